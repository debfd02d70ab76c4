"""
Text Sanitizer
==============

Every untrusted string from a feed passes through sanitize_title /
sanitize_summary before it reaches a classification prompt, and through
escape_html / sanitize_url before it is interpolated into markup.
"""

import re

MAX_TITLE_LENGTH = 200
MAX_SUMMARY_LENGTH = 500
ELLIPSIS = "..."

# C0 and C1 control characters, keeping \t (0x09) and \n (0x0A)
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
UNSAFE_URL_PATTERN = re.compile(r"^(javascript|data|vbscript):", re.IGNORECASE)


def strip_control_chars(text: str) -> str:
    """Remove control characters that could hide injected instructions."""
    return CONTROL_CHARS_PATTERN.sub("", text)


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def _sanitize(text: str, max_length: int) -> str:
    if not text:
        return ""
    return truncate(strip_control_chars(text).strip(), max_length)


def sanitize_title(title: str) -> str:
    return _sanitize(title, MAX_TITLE_LENGTH)


def sanitize_summary(summary: str) -> str:
    return _sanitize(summary, MAX_SUMMARY_LENGTH)


def escape_html(unsafe: str) -> str:
    """Escape a string for interpolation into HTML text or attributes."""
    return (
        unsafe.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def sanitize_url(url: str) -> str:
    """Make a URL safe for an href attribute, blocking script-capable schemes."""
    trimmed = url.strip()
    if UNSAFE_URL_PATTERN.match(trimmed):
        return "#blocked"
    return escape_html(trimmed)
