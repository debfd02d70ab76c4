"""
Feed Normalizer
===============

Turns raw RSS 2.0, Atom and HTML listing payloads into RawItem models.

Strategies:
- RSS ``<item>`` blocks are tried first
- Atom ``<entry>`` blocks only when the payload has no usable RSS items
- HTML listing pages (web sources) are scanned for anchors wrapping a
  heading whose href sits under the listing page's own path

An entry survives only if it has both a title and a link after stripping.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from dram.models import FeedSource, RawItem
from dram.utils.logging import get_logger_for_component
from .content_cleaner import strip_html
from .markup import extract_attr, extract_tag, find_blocks
from .sanitizer import MAX_SUMMARY_LENGTH, sanitize_summary, sanitize_title, truncate

logger = get_logger_for_component("feed_parser")

# <a href="/news/slug">...<h3>Title</h3>...</a>, never crossing a closing </a>
WEB_ARTICLE_PATTERN = re.compile(
    r"""<a\s[^>]*?href\s*=\s*["']([^"']*)["'][^>]*>"""
    r"""(?:(?!</a\s*>).)*?<h([23])\b[^>]*>(.*?)</h\2\s*>(?:(?!</a\s*>).)*?</a\s*>""",
    re.IGNORECASE | re.DOTALL,
)
# "Feb 20, 2026" / "feb 3 2025"
LISTING_DATE_PATTERN = re.compile(
    r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2},?\s+\d{4}",
    re.IGNORECASE,
)
DATE_LOOKBEHIND_CHARS = 300


@dataclass
class ParsedEntry:
    """One entry extracted from a payload, before normalization."""

    title: str
    link: str
    summary: str = ""
    published: str = ""


def _make_entry(title: str, link: str, summary: str, published: str) -> Optional[ParsedEntry]:
    title = strip_html(title)
    link = link.strip()
    if not title or not link:
        return None
    return ParsedEntry(
        title=title,
        link=link,
        summary=truncate(strip_html(summary), MAX_SUMMARY_LENGTH),
        published=published.strip(),
    )


def parse_rss_items(xml: str) -> List[ParsedEntry]:
    """Extract entries from RSS 2.0 ``<item>`` blocks."""
    entries = []
    for item in find_blocks(xml, "item"):
        entry = _make_entry(
            title=extract_tag(item, "title"),
            link=extract_tag(item, "link") or extract_attr(item, "link", "href"),
            summary=extract_tag(item, "description") or extract_tag(item, "content:encoded"),
            published=extract_tag(item, "pubDate") or extract_tag(item, "dc:date"),
        )
        if entry:
            entries.append(entry)
    return entries


def parse_atom_entries(xml: str) -> List[ParsedEntry]:
    """Extract entries from Atom ``<entry>`` blocks."""
    entries = []
    for block in find_blocks(xml, "entry"):
        entry = _make_entry(
            title=extract_tag(block, "title"),
            link=(
                extract_attr(block, 'link[rel="alternate"]', "href")
                or extract_attr(block, "link", "href")
            ),
            summary=extract_tag(block, "summary") or extract_tag(block, "content"),
            published=extract_tag(block, "published") or extract_tag(block, "updated"),
        )
        if entry:
            entries.append(entry)
    return entries


def parse_feed_entries(xml: str) -> List[ParsedEntry]:
    """Parse a feed payload, preferring RSS items over Atom entries."""
    entries = parse_rss_items(xml)
    if entries:
        return entries
    return parse_atom_entries(xml)


def _listing_prefix(base_url: str) -> str:
    return urlparse(base_url).path.rstrip("/")


def _is_article_path(path: str, prefix: str) -> bool:
    # Strictly below the listing page, e.g. /news/some-slug under /news
    return path.startswith(prefix + "/") and path != prefix + "/"


def _site_host(netloc: str) -> str:
    """Host used for same-site checks; www. and apex count as one site."""
    host = netloc.lower()
    return host[4:] if host.startswith("www.") else host


def parse_web_entries(html_text: str, base_url: str) -> List[ParsedEntry]:
    """
    Parse article links from an HTML listing page.

    Args:
        html_text: Listing page markup
        base_url: URL of the listing page, used for path filtering and
            resolving relative links

    Returns:
        Entries in page order; ``published`` holds a "Mon D, YYYY" token
        found just before the anchor, or is empty
    """
    if not isinstance(html_text, str) or not html_text:
        return []

    try:
        prefix = _listing_prefix(base_url)
        base_host = _site_host(urlparse(base_url).netloc)
    except ValueError:
        logger.warning(f"Unparseable listing URL: {base_url}")
        return []

    entries = []
    for match in WEB_ARTICLE_PATTERN.finditer(html_text):
        href = match.group(1).strip()
        title = strip_html(match.group(3))
        if not title or not href:
            continue

        try:
            link = urljoin(base_url, href)
            parsed_link = urlparse(link)
        except ValueError:
            continue

        if parsed_link.scheme not in ("http", "https") or not parsed_link.netloc:
            continue
        if _site_host(parsed_link.netloc) != base_host:
            continue
        if not _is_article_path(parsed_link.path, prefix):
            continue

        preceding = html_text[max(0, match.start() - DATE_LOOKBEHIND_CHARS):match.start()]
        # Nearest date wins; earlier ones in the window belong to previous cards
        dates = LISTING_DATE_PATTERN.findall(preceding)

        entries.append(
            ParsedEntry(
                title=title,
                link=link,
                summary="",
                published=dates[-1] if dates else "",
            )
        )

    return entries


def normalize_entries(
    source: FeedSource, entries: List[ParsedEntry], fetched_at: Optional[datetime] = None
) -> List[RawItem]:
    """Map parsed entries to sanitized RawItems for one source."""
    fetched_at = fetched_at or datetime.now(timezone.utc)
    fallback_published = fetched_at.isoformat()

    items = []
    for entry in entries:
        title = sanitize_title(entry.title)
        url = entry.link.strip()
        if not title or not url:
            continue

        items.append(
            RawItem(
                source_id=source.id,
                source_name=source.name,
                category=source.category,
                url=url,
                title=title,
                summary=sanitize_summary(entry.summary),
                published_at=entry.published or fallback_published,
            )
        )

    return items


def parse_source_payload(
    source: FeedSource, payload: str, fetched_at: Optional[datetime] = None
) -> List[RawItem]:
    """Pick the extraction strategy for a source and normalize the result."""
    if source.is_web:
        entries = parse_web_entries(payload, source.url)
    else:
        entries = parse_feed_entries(payload)

    return normalize_entries(source, entries, fetched_at)
