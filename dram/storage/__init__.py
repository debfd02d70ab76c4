"""
Dram Storage Layer
==================

Persistence of run state.

This module provides:
- Seen store keyed by item URL with a retention window
"""

from .seen_store import SeenStore, SeenStats

__all__ = [
    "SeenStore",
    "SeenStats",
]
