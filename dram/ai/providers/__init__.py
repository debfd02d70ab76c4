"""
Classification Providers
========================

Backends implementing the ClassificationProvider interface.
"""

from .base import ClassificationProvider, parse_json_response
from .claude_cli import ClaudeCliProvider

__all__ = [
    'ClassificationProvider',
    'parse_json_response',
    'ClaudeCliProvider',
]
