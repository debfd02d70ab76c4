"""
Unit tests for feed normalization.

Tests RSS, Atom and HTML listing extraction plus the mapping of parsed
entries to sanitized RawItems.
"""

from datetime import datetime, timezone

import pytest

from conftest import make_source
from dram.ingestion.feed_parser import (
    ParsedEntry,
    normalize_entries,
    parse_atom_entries,
    parse_feed_entries,
    parse_rss_items,
    parse_source_payload,
    parse_web_entries,
)
from dram.models import SignalCategory

FETCHED_AT = datetime(2026, 2, 21, 8, 30, tzinfo=timezone.utc)


class TestFeedEntries:
    """RSS and Atom extraction."""

    def test_rss_items(self, rss_feed):
        entries = parse_rss_items(rss_feed)

        assert [e.title for e in entries] == ["New CompTIA exam objectives", "Breach roundup"]
        assert entries[0].link == "https://example.com/comptia-objectives"
        assert entries[0].summary == "The exam changes in May."
        assert entries[0].published == "Mon, 02 Feb 2026 10:00:00 GMT"
        assert entries[1].published == ""

    def test_atom_prefers_alternate_link(self, atom_feed):
        entries = parse_atom_entries(atom_feed)

        assert len(entries) == 1
        assert entries[0].link == "https://example.org/posts/model-release"
        assert entries[0].summary == "Release summary"
        assert entries[0].published == "2026-02-03T09:00:00Z"

    def test_atom_falls_back_to_any_link(self):
        xml = '<feed><entry><title>T</title><link href="https://example.org/t"/></entry></feed>'
        assert parse_atom_entries(xml)[0].link == "https://example.org/t"

    def test_rss_wins_over_atom(self):
        xml = (
            "<rss><channel>"
            "<item><title>RSS one</title><link>https://example.com/rss-1</link></item>"
            "</channel></rss>"
            '<entry><title>Atom one</title><link href="https://example.com/atom-1"/></entry>'
        )
        entries = parse_feed_entries(xml)
        assert [e.title for e in entries] == ["RSS one"]

    def test_atom_used_when_no_rss_items(self, atom_feed):
        assert [e.title for e in parse_feed_entries(atom_feed)] == ["Model release notes"]

    def test_entries_without_title_or_link_are_dropped(self):
        xml = (
            "<item><title>No link</title></item>"
            "<item><link>https://example.com/no-title</link></item>"
            "<item><title><![CDATA[ ]]></title><link>https://example.com/blank</link></item>"
            "<item><title>Kept</title><link>https://example.com/kept</link></item>"
        )
        assert [e.title for e in parse_rss_items(xml)] == ["Kept"]

    def test_html_in_title_is_stripped(self):
        xml = "<item><title><![CDATA[<b>Bold</b> &amp; plain]]></title><link>https://e.com/x</link></item>"
        assert parse_rss_items(xml)[0].title == "Bold & plain"

    @pytest.mark.parametrize("payload", ["", "not xml at all", "<rss><item><title>cut", "<<<>>>"])
    def test_malformed_payload_yields_nothing(self, payload):
        assert parse_feed_entries(payload) == []


class TestWebEntries:
    """HTML listing extraction."""

    def test_listing_page(self, web_listing):
        entries = parse_web_entries(web_listing, "https://www.example.ai/news")

        assert [e.title for e in entries] == ["Claude update", "New tooling"]
        assert entries[0].link == "https://www.example.ai/news/claude-update"
        assert entries[0].published == "Feb 20, 2026"
        assert entries[1].published == "Feb 18, 2026"

    def test_nav_anchor_does_not_swallow_next_article(self):
        html_text = (
            '<a href="/news">All news</a>'
            '<a href="/news/real-post"><h3>Real post</h3></a>'
        )
        entries = parse_web_entries(html_text, "https://www.example.ai/news")
        assert [(e.title, e.link) for e in entries] == [
            ("Real post", "https://www.example.ai/news/real-post")
        ]

    def test_other_hosts_and_schemes_are_skipped(self):
        html_text = (
            '<a href="https://elsewhere.example/news/x"><h3>Elsewhere</h3></a>'
            '<a href="javascript:alert(1)"><h3>Script</h3></a>'
            '<a href="/news/"><h3>Listing itself</h3></a>'
        )
        assert parse_web_entries(html_text, "https://www.example.ai/news") == []

    def test_www_and_apex_hosts_are_one_site(self):
        html_text = (
            '<a href="https://example.ai/news/apex-post"><h3>Apex post</h3></a>'
            '<a href="https://WWW.Example.ai/news/upper-post"><h3>Upper post</h3></a>'
            '<a href="https://blog.example.ai/news/sub-post"><h3>Subdomain post</h3></a>'
        )
        entries = parse_web_entries(html_text, "https://www.example.ai/news")
        assert [e.link for e in entries] == [
            "https://example.ai/news/apex-post",
            "https://WWW.Example.ai/news/upper-post",
        ]

    def test_nearest_preceding_date_wins(self):
        html_text = (
            "<span>Jan 2, 2026</span><p>Older card</p>"
            "<span>jan 9 2026</span>"
            '<a href="/news/latest"><h3>Latest</h3></a>'
        )
        entries = parse_web_entries(html_text, "https://www.example.ai/news")
        assert entries[0].published == "jan 9 2026"

    def test_missing_date(self):
        html_text = '<a href="/news/undated"><h2>Undated</h2></a>'
        entries = parse_web_entries(html_text, "https://www.example.ai/news")
        assert entries[0].published == ""

    def test_empty_page(self):
        assert parse_web_entries("", "https://www.example.ai/news") == []


class TestNormalization:
    """Mapping ParsedEntry to RawItem."""

    def test_normalize_fields(self):
        source = make_source("example-sec", category="security_training")
        entries = [
            ParsedEntry(title="\x00Title", link=" https://example.com/a ", summary="s", published=""),
        ]

        items = normalize_entries(source, entries, fetched_at=FETCHED_AT)

        assert len(items) == 1
        item = items[0]
        assert item.source_id == "example-sec"
        assert item.category == SignalCategory.SECURITY_TRAINING
        assert item.title == "Title"
        assert item.url == "https://example.com/a"
        assert item.published_at == FETCHED_AT.isoformat()

    def test_publication_time_is_kept(self, rss_feed):
        source = make_source()
        items = parse_source_payload(source, rss_feed, fetched_at=FETCHED_AT)

        assert items[0].published_at == "Mon, 02 Feb 2026 10:00:00 GMT"
        assert items[1].published_at == FETCHED_AT.isoformat()

    def test_web_source_uses_listing_parser(self, web_listing):
        source = make_source(
            "example-news", type="web", url="https://www.example.ai/news", category="ai_dev_tools"
        )
        items = parse_source_payload(source, web_listing, fetched_at=FETCHED_AT)

        assert [i.url for i in items] == [
            "https://www.example.ai/news/claude-update",
            "https://www.example.ai/news/tooling",
        ]
        assert all(i.summary == "" for i in items)

    def test_long_title_is_truncated(self):
        source = make_source()
        xml = f"<item><title>{'a' * 250}</title><link>https://example.com/long</link></item>"

        items = parse_source_payload(source, xml, fetched_at=FETCHED_AT)

        assert items[0].title == "a" * 200 + "..."
