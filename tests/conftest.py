"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for Dram tests.

- Sample sources and items
- Mock aiohttp sessions serving canned payloads per URL
- Seen stores isolated under tmp_path
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["DRAM_DEBUG"] = "true"
os.environ["DRAM_STORE__DATA_DIR"] = str(Path(__file__).parent / ".dram-test-data")


RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Security</title>
    <item>
      <title><![CDATA[New CompTIA exam objectives]]></title>
      <link>https://example.com/comptia-objectives</link>
      <description><![CDATA[<p>The exam changes in <b>May</b>.</p>]]></description>
      <pubDate>Mon, 02 Feb 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Breach roundup</title>
      <link>https://example.com/breach-roundup</link>
      <description>Weekly roundup</description>
    </item>
  </channel>
</rss>"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <entry>
    <title>Model release notes</title>
    <link rel="self" href="https://example.org/self/1"/>
    <link rel="alternate" href="https://example.org/posts/model-release"/>
    <summary>Release summary</summary>
    <updated>2026-02-03T09:00:00Z</updated>
  </entry>
</feed>"""

WEB_LISTING = """<html><body>
<nav><a href="/news">News</a></nav>
<div class="card">
  <span>Feb 20, 2026</span>
  <a href="/news/claude-update"><h3>Claude update</h3></a>
</div>
<div class="card">
  <span>Feb 18, 2026</span>
  <a href="https://www.example.ai/news/tooling"><h2>New <em>tooling</em></h2></a>
</div>
<a href="/careers/open-roles"><h3>Join us</h3></a>
</body></html>"""


def make_source(source_id="example-sec", type="feed", url="https://example.com/feed.xml",
                category="security_training", name=None):
    from dram.models import FeedSource

    return FeedSource(
        id=source_id,
        name=name or source_id.replace("-", " ").title(),
        type=type,
        url=url,
        category=category,
    )


def make_item(url="https://example.com/a", title="Title", summary="Summary",
              source_id="example-sec", category="security_training"):
    from dram.models import RawItem

    return RawItem(
        source_id=source_id,
        source_name=source_id.replace("-", " ").title(),
        category=category,
        url=url,
        title=title,
        summary=summary,
        published_at="2026-02-02T10:00:00+00:00",
    )


def make_response(status=200, body=""):
    """aiohttp-style response usable as ``async with session.get(...)``."""
    response = MagicMock()
    response.status = status
    response.read = AsyncMock(
        return_value=body.encode("utf-8") if isinstance(body, str) else body
    )

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def make_session(routes):
    """Mock session dispatching on URL.

    ``routes`` maps URL to a body string, a (status, body) tuple, or an
    exception instance raised when the request is entered.
    """
    session = MagicMock(spec=aiohttp.ClientSession)

    def get(url, **kwargs):
        route = routes.get(url)
        if isinstance(route, BaseException):
            context = MagicMock()
            context.__aenter__ = AsyncMock(side_effect=route)
            context.__aexit__ = AsyncMock(return_value=False)
            return context
        if isinstance(route, tuple):
            return make_response(*route)
        if route is None:
            return make_response(404, "")
        return make_response(200, route)

    session.get = MagicMock(side_effect=get)
    return session


@pytest.fixture
def rss_feed():
    return RSS_FEED


@pytest.fixture
def atom_feed():
    return ATOM_FEED


@pytest.fixture
def web_listing():
    return WEB_LISTING


@pytest.fixture
def seen_path(tmp_path):
    return tmp_path / "data" / "seen.json"


@pytest.fixture
def seen_store(seen_path):
    from dram.storage.seen_store import SeenStore

    return SeenStore(seen_path)


@pytest.fixture
def sample_items():
    return [
        make_item(url=f"https://example.com/item-{i}", title=f"Item {i}")
        for i in range(3)
    ]
