"""
Markup Extractor
================

Tolerant tag, attribute and CDATA extraction over raw feed markup.

Feeds in the wild are rarely valid XML, so instead of a strict document
parser these helpers pattern-match the fields they need. Absence is the
only failure signal: every function returns an empty value rather than
raising on malformed, truncated or non-string input.
"""

import re
from functools import lru_cache
from typing import List, Optional, Tuple

CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
ATTRIBUTE_PATTERN = re.compile(
    r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))"""
)
SELECTOR_PATTERN = re.compile(
    r"""^([\w:.-]+)(?:\[([\w:.-]+)\s*=\s*["']?([^"'\]]*)["']?\])?$"""
)

_FLAGS = re.IGNORECASE | re.DOTALL


@lru_cache(maxsize=128)
def _opening_tag(tag: str) -> str:
    # Opening tag that is not self-closing, e.g. <title> or <link rel="x">
    return rf"<{re.escape(tag)}(?:\s[^>]*?)?(?<!/)>"


@lru_cache(maxsize=128)
def _cdata_pattern(tag: str) -> re.Pattern:
    return re.compile(
        rf"{_opening_tag(tag)}\s*<!\[CDATA\[(.*?)\]\]>\s*</{re.escape(tag)}\s*>", _FLAGS
    )


@lru_cache(maxsize=128)
def _text_pattern(tag: str) -> re.Pattern:
    return re.compile(rf"{_opening_tag(tag)}(.*?)</{re.escape(tag)}\s*>", _FLAGS)


@lru_cache(maxsize=128)
def _any_opening_tag_pattern(tag: str) -> re.Pattern:
    return re.compile(rf"<{re.escape(tag)}(\s[^>]*)?/?>", _FLAGS)


def extract_tag(markup: str, tag: str) -> str:
    """Return the trimmed inner text of the first ``<tag>`` element.

    A CDATA-wrapped body wins over a plain match. CDATA sections embedded
    in a plain body are unwrapped in place.

    Args:
        markup: Markup fragment to search
        tag: Tag name, matched case-insensitively (``content:encoded`` works)

    Returns:
        Inner text, or ``""`` if the element is absent or unterminated
    """
    if not isinstance(markup, str) or not markup or not tag:
        return ""

    cdata_match = _cdata_pattern(tag).search(markup)
    if cdata_match:
        return cdata_match.group(1).strip()

    match = _text_pattern(tag).search(markup)
    if not match:
        return ""

    return CDATA_PATTERN.sub(lambda m: m.group(1), match.group(1)).strip()


def _parse_selector(selector: str) -> Optional[Tuple[str, Optional[str], Optional[str]]]:
    match = SELECTOR_PATTERN.match(selector.strip())
    if not match:
        return None
    return match.group(1), match.group(2), match.group(3)


def parse_attributes(tag_body: str) -> dict:
    """Parse ``name="value"`` pairs from the inside of an opening tag.

    Attribute names are lower-cased; the first occurrence of a name wins.
    """
    attributes = {}
    for match in ATTRIBUTE_PATTERN.finditer(tag_body or ""):
        name = match.group(1).lower()
        if name in attributes:
            continue
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attributes[name] = value
    return attributes


def extract_attr(markup: str, tag: str, attr: str) -> str:
    """Return an attribute value from the first matching opening tag.

    ``tag`` may carry a single attribute selector, e.g.
    ``link[rel="alternate"]``, restricting the match to tags whose
    attribute equals the given value.

    Returns:
        Trimmed attribute value, or ``""`` if no tag carries it
    """
    if not isinstance(markup, str) or not markup or not tag or not attr:
        return ""

    parsed = _parse_selector(tag)
    if parsed is None:
        return ""
    tag_name, filter_name, filter_value = parsed
    attr = attr.lower()

    for match in _any_opening_tag_pattern(tag_name).finditer(markup):
        attributes = parse_attributes(match.group(1) or "")

        if filter_name is not None:
            actual = attributes.get(filter_name.lower())
            if actual is None or actual.strip().lower() != (filter_value or "").lower():
                continue

        if attr in attributes:
            return attributes[attr].strip()

    return ""


def find_blocks(markup: str, tag: str) -> List[str]:
    """Return every complete ``<tag>...</tag>`` block in document order."""
    if not isinstance(markup, str) or not markup or not tag:
        return []

    return [match.group(0) for match in _text_pattern(tag).finditer(markup)]
