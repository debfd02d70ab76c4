"""
Dram - News Signal Monitor
==========================

Concurrent RSS/Atom/web ingestion with URL-level deduplication and
AI-assisted triage of what is worth reading.

Main Components:
- Ingestion: tolerant markup extraction, normalization and sanitization
- Processing: concurrent fetching, triage orchestration, run pipeline
- Storage: TTL-bounded seen store keyed by item URL
- AI Integration: pluggable classification providers (Claude CLI)
"""

__version__ = "1.0.0"
__author__ = "Dram Development Team"
__description__ = "News signal monitor with deduplication and AI triage"

# Core imports for easy access
from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import DramError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "DramError",
]
