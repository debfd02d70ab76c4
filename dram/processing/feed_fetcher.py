"""
Feed Fetcher
============

Concurrent fetching of every configured source with per-source error
isolation: a failing source yields an empty result and never cancels or
delays its siblings.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import aiohttp
import certifi

from ..config.settings import FetchSettings
from ..ingestion.feed_parser import parse_source_payload
from ..models import FeedSource, RawItem
from ..utils.exceptions import ErrorCode, FeedFetchError
from ..utils.logging import get_logger_for_component

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml"
WEB_ACCEPT = "text/html"


@dataclass
class FetchResult:
    """Outcome of fetching one source."""

    source_id: str
    success: bool
    items: List[RawItem] = field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    fetch_time: Optional[datetime] = None
    item_count: int = 0

    def __post_init__(self):
        self.item_count = len(self.items)
        if not self.fetch_time:
            self.fetch_time = datetime.now(timezone.utc)


class FeedFetcher:
    """Fetches sources concurrently and normalizes their payloads."""

    def __init__(self, settings: Optional[FetchSettings] = None):
        """Initialize feed fetcher.

        Args:
            settings: Fetch settings (timeout, concurrency cap, user agent)
        """
        self.settings = settings or FetchSettings()
        self.timeout = self.settings.timeout_seconds
        self.max_concurrent = self.settings.max_concurrent
        self.logger = get_logger_for_component("feed_fetcher")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    def build_headers(self, source: FeedSource) -> dict:
        """Request headers for a source; Accept depends on the source type."""
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": WEB_ACCEPT if source.is_web else FEED_ACCEPT,
        }

    @asynccontextmanager
    async def get_session(self):
        """Get a configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.max_concurrent * 2,
            limit_per_host=4,
        )
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
            yield session

    async def fetch_source(
        self, source: FeedSource, session: aiohttp.ClientSession
    ) -> FetchResult:
        """Fetch and parse a single source. Never raises.

        Args:
            source: Source to fetch
            session: aiohttp session for requests

        Returns:
            FetchResult holding the source's items, or an error and no items
        """
        start_time = datetime.now(timezone.utc)
        logger = get_logger_for_component("feed_fetcher", source_id=source.id)

        try:
            logger.debug(f"Fetching {source.url}")

            async with session.get(
                source.url,
                headers=self.build_headers(source),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    raise FeedFetchError(
                        f"HTTP {response.status}",
                        source_id=source.id,
                        error_code=ErrorCode.FEED_HTTP_ERROR,
                    )

                body = await response.read()

            # Declared charsets are unreliable; decode leniently
            text = body.decode("utf-8", errors="replace")

            try:
                items = parse_source_payload(source, text, fetched_at=start_time)
            except Exception as e:
                raise FeedFetchError(
                    f"Parse error: {e}",
                    source_id=source.id,
                    error_code=ErrorCode.FEED_PARSE_ERROR,
                ) from e

            logger.info(
                f"Fetched {len(items)} items "
                f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
            )
            return FetchResult(
                source_id=source.id,
                success=True,
                items=items,
                fetch_time=start_time,
            )

        except FeedFetchError as e:
            return self._failed_result(e, start_time, logger)

        except asyncio.TimeoutError:
            error = FeedFetchError(
                f"Request timeout after {self.timeout}s",
                source_id=source.id,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            )
            return self._failed_result(error, start_time, logger)

        except aiohttp.InvalidURL as e:
            error = FeedFetchError(
                f"Invalid URL: {e}",
                source_id=source.id,
                error_code=ErrorCode.FEED_INVALID_URL,
            )
            return self._failed_result(error, start_time, logger)

        except aiohttp.ClientError as e:
            error = FeedFetchError(
                f"Network error: {e}",
                source_id=source.id,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            )
            return self._failed_result(error, start_time, logger)

        except Exception as e:
            logger.debug("Unexpected fetch failure", exc_info=True)
            error = FeedFetchError(
                f"Fetch error: {e}",
                source_id=source.id,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            )
            return self._failed_result(error, start_time, logger)

    @staticmethod
    def _failed_result(error: FeedFetchError, start_time: datetime, logger) -> FetchResult:
        """Log a fetch failure and turn it into an empty result."""
        logger.warning(f"Fetch failed: {error}", extra={"error": error.to_dict()})
        return FetchResult(
            source_id=error.context.get("source_id", ""),
            success=False,
            error=error.args[0],
            error_code=error.error_code,
            fetch_time=start_time,
        )

    async def fetch_sources(
        self, sources: List[FeedSource], session: Optional[aiohttp.ClientSession] = None
    ) -> List[FetchResult]:
        """Fetch every source concurrently and wait for all of them.

        Args:
            sources: Sources to fetch
            session: Existing session to reuse (a new one is opened otherwise)

        Returns:
            One FetchResult per source, in source order
        """
        if not sources:
            return []

        if session is None:
            async with self.get_session() as owned_session:
                return await self._gather(sources, owned_session)
        return await self._gather(sources, session)

    async def _gather(
        self, sources: List[FeedSource], session: aiohttp.ClientSession
    ) -> List[FetchResult]:
        self.logger.info(f"Starting concurrent fetch of {len(sources)} sources")
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(source: FeedSource) -> FetchResult:
            async with semaphore:
                return await self.fetch_source(source, session)

        outcomes = await asyncio.gather(
            *(fetch_with_semaphore(source) for source in sources),
            return_exceptions=True,
        )

        results = []
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                self.logger.warning(f"Fetch task for {source.id} crashed: {outcome!r}")
                outcome = FetchResult(source_id=source.id, success=False, error=str(outcome))
            results.append(outcome)

        successful = sum(1 for r in results if r.success)
        total_items = sum(r.item_count for r in results)
        self.logger.info(
            f"Fetch complete: {successful}/{len(results)} sources successful, "
            f"{total_items} total items"
        )

        return results

    async def fetch_all(
        self, sources: List[FeedSource], session: Optional[aiohttp.ClientSession] = None
    ) -> List[RawItem]:
        """Fetch every source and flatten the items into one list."""
        results = await self.fetch_sources(sources, session=session)
        return [item for result in results for item in result.items]
