"""
Dram Ingestion Module
=====================

Feed payload parsing and content normalization components.

This module handles:
- Tolerant tag and attribute extraction from raw markup
- RSS, Atom and HTML listing page parsing
- HTML stripping and field sanitization
"""
