"""
Content Cleaner
===============

HTML-to-text conversion for feed titles and summaries.

Feed fields routinely carry markup (``<p>``, ``<a>``, inline styles) and
entity-encoded text. The cleaner removes tags, drops script/style bodies,
decodes entities and collapses whitespace so that downstream consumers only
ever see one line of plain text.
"""

import re
import html
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from dram.utils.logging import get_logger_for_component

# Titles that look like URLs or paths are legitimate input here
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


class ContentCleaner:
    """Plain-text extraction with a regex fallback when parsing fails."""

    # Elements whose content is never readable text
    DANGEROUS_ELEMENTS = {
        "script",
        "style",
        "iframe",
        "noscript",
        "object",
        "embed",
        "template",
    }

    WHITESPACE_PATTERN = re.compile(r"\s+")
    TAG_PATTERN = re.compile(r"<[^>]*>")
    SCRIPT_STYLE_PATTERN = re.compile(
        r"<(script|style)[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
    )

    def __init__(self):
        self.logger = get_logger_for_component("content_cleaner")
        self.parser = "html.parser"  # Built-in parser, no external deps

    def strip_html(self, html_content: str) -> str:
        """
        Remove all markup from a fragment and return normalized text.

        Args:
            html_content: Raw title or summary, possibly containing HTML

        Returns:
            Single-line plain text with entities decoded
        """
        if not html_content or not html_content.strip():
            return ""

        try:
            soup = BeautifulSoup(html_content, self.parser)

            for element in soup(self.DANGEROUS_ELEMENTS):
                element.decompose()

            text = soup.get_text()

        except Exception as e:
            self.logger.warning(f"HTML parsing failed, using regex fallback: {e}")
            return self._strip_html_fallback(html_content)

        return self._normalize_whitespace(text)

    def _normalize_whitespace(self, text: str) -> str:
        return self.WHITESPACE_PATTERN.sub(" ", text).strip()

    def _strip_html_fallback(self, html_content: str) -> str:
        """Regex-only extraction used when BeautifulSoup cannot cope."""
        content = self.SCRIPT_STYLE_PATTERN.sub("", html_content)
        content = self.TAG_PATTERN.sub("", content)
        content = html.unescape(content)
        return self._normalize_whitespace(content)


_default_cleaner = None


def strip_html(html_content: str) -> str:
    """Module-level shortcut using a shared ContentCleaner."""
    global _default_cleaner
    if _default_cleaner is None:
        _default_cleaner = ContentCleaner()
    return _default_cleaner.strip_html(html_content)
