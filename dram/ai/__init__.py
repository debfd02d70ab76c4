"""
Dram AI Module
==============

Classification providers used to triage items and analyze the
actionable ones.
"""

from .providers.base import ClassificationProvider, parse_json_response
from .providers.claude_cli import ClaudeCliProvider

__all__ = ["ClassificationProvider", "parse_json_response", "ClaudeCliProvider"]
