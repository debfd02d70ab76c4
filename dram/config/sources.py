"""
Source Catalog
==============

Built-in list of monitored sources and loading of a JSON catalog that
replaces it. A catalog file holds a JSON array of source objects::

    [{"id": "krebs-security", "name": "Krebs on Security", "type": "feed",
      "url": "https://krebsonsecurity.com/feed/", "category": "security_training"}]
"""

import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from ..models import FeedSource, SignalCategory, SourceType
from ..utils.exceptions import ConfigurationError, ErrorCode


def _feed(source_id: str, name: str, url: str, category: SignalCategory) -> FeedSource:
    return FeedSource(id=source_id, name=name, type=SourceType.FEED, url=url, category=category)


_SEC = SignalCategory.SECURITY_TRAINING
_AI = SignalCategory.AI_DEV_TOOLS
_CRYPTO = SignalCategory.CRYPTO_RWA

DEFAULT_SOURCES: List[FeedSource] = [
    # Security certification and training market
    _feed("sans-isc", "SANS Internet Storm Center", "https://isc.sans.edu/rssfeed.xml", _SEC),
    _feed("hackthebox-blog", "Hack The Box Blog", "https://www.hackthebox.com/rss/blog/all", _SEC),
    _feed("reddit-comptia", "r/CompTIA", "https://www.reddit.com/r/CompTIA/.rss", _SEC),
    _feed("blackhills-infosec", "Black Hills InfoSec", "https://www.blackhillsinfosec.com/feed/", _SEC),
    _feed("helpnetsecurity", "Help Net Security", "https://www.helpnetsecurity.com/feed/", _SEC),
    _feed("sans-newsbites", "SANS NewsBites", "https://www.sans.org/newsletters/newsbites/rss", _SEC),
    _feed("darkreading", "Dark Reading", "https://www.darkreading.com/rss.xml", _SEC),
    _feed("krebs-security", "Krebs on Security", "https://krebsonsecurity.com/feed/", _SEC),
    _feed("schneier", "Schneier on Security", "https://www.schneier.com/feed/atom/", _SEC),
    _feed("thehackernews", "The Hacker News", "https://feeds.feedburner.com/TheHackersNews", _SEC),
    # AI and developer tools
    FeedSource(
        id="anthropic-news",
        name="Anthropic News",
        type=SourceType.WEB,
        url="https://www.anthropic.com/news",
        category=_AI,
    ),
    _feed("openai-blog", "OpenAI Blog", "https://openai.com/blog/rss.xml", _AI),
    _feed("techcrunch-ai", "TechCrunch AI", "https://techcrunch.com/category/artificial-intelligence/feed/", _AI),
    _feed("theverge-ai", "The Verge AI", "https://www.theverge.com/rss/ai-artificial-intelligence/index.xml", _AI),
    _feed("hn-frontpage", "Hacker News Front Page", "https://hnrss.org/frontpage", _AI),
    _feed("github-blog", "GitHub Blog", "https://github.blog/feed/", _AI),
    _feed("apple-developer-news", "Apple Developer News", "https://developer.apple.com/news/rss/news.rss", _AI),
    # Crypto and RWA tokenization
    _feed("coindesk", "CoinDesk", "https://www.coindesk.com/arc/outboundfeeds/rss/", _CRYPTO),
    _feed("cointelegraph", "CoinTelegraph", "https://cointelegraph.com/rss", _CRYPTO),
    _feed("theblock", "The Block", "https://www.theblock.co/rss.xml", _CRYPTO),
    _feed("bitcoin-magazine", "Bitcoin Magazine", "https://bitcoinmagazine.com/feed", _CRYPTO),
    _feed("dlnews", "DL News", "https://www.dlnews.com/arc/outboundfeeds/rss/", _CRYPTO),
]


def load_sources(path: Optional[Union[str, Path]] = None) -> List[FeedSource]:
    """Load the source catalog.

    Args:
        path: JSON catalog file; the built-in catalog is returned when None

    Returns:
        Validated sources in file order

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if path is None:
        return list(DEFAULT_SOURCES)

    catalog_path = Path(path).expanduser()

    try:
        with open(catalog_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Source catalog not found: {catalog_path}",
            config_key="sources_file",
            error_code=ErrorCode.CONFIG_MISSING,
        ) from e
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Cannot read source catalog {catalog_path}: {e}",
            config_key="sources_file",
            error_code=ErrorCode.CONFIG_PARSE_ERROR,
        ) from e

    if not isinstance(data, list):
        raise ConfigurationError(
            f"Source catalog {catalog_path} must be a JSON array",
            config_key="sources_file",
        )

    try:
        sources = [FeedSource.model_validate(entry) for entry in data]
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid source in {catalog_path}: {e}", config_key="sources_file"
        ) from e

    seen_ids = set()
    for source in sources:
        if source.id in seen_ids:
            raise ConfigurationError(
                f"Duplicate source id '{source.id}' in {catalog_path}",
                config_key="sources_file",
            )
        seen_ids.add(source.id)

    return sources
