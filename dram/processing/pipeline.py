"""
Run Pipeline
============

One run end to end: fetch every source, keep only unseen items, mark them
seen immediately, then triage and analyze.

Items are marked seen before classification so a failed or interrupted
classification never causes the same items to be reprocessed. A seen-store
write failure ends the run; every other stage degrades.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..models import AnalyzedItem, FeedSource, ScoreLevel, ScoredItem
from ..storage.seen_store import SeenStore
from ..utils.logging import PerformanceLogger, get_logger_for_component
from .feed_fetcher import FeedFetcher, FetchResult
from .triage import TriageOrchestrator


@dataclass
class PipelineResult:
    """Counters and outputs of a single run."""

    total_sources: int = 0
    successful_sources: int = 0
    items_fetched: int = 0
    new_items: int = 0
    score_counts: Dict[str, int] = field(default_factory=dict)
    analyzed: List[AnalyzedItem] = field(default_factory=list)
    watch: List[ScoredItem] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    fetch_time_seconds: float = 0.0
    classification_time_seconds: float = 0.0
    total_time_seconds: float = 0.0

    @property
    def failed_sources(self) -> int:
        return self.total_sources - self.successful_sources

    @property
    def has_findings(self) -> bool:
        return bool(self.analyzed or self.watch)


class IngestionPipeline:
    """Composes fetcher, seen store and triage into one run."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        store: SeenStore,
        orchestrator: Optional[TriageOrchestrator] = None,
        analyze: bool = True,
    ):
        """Initialize the pipeline.

        Args:
            fetcher: Concurrent source fetcher
            store: Seen-item store
            orchestrator: Triage orchestrator; without one the run stops
                after marking new items seen
            analyze: Whether act_now items get a deep analysis
        """
        self.fetcher = fetcher
        self.store = store
        self.orchestrator = orchestrator
        self.analyze = analyze
        self.logger = get_logger_for_component("pipeline")

    async def run(self, sources: List[FeedSource], now: Optional[datetime] = None) -> PipelineResult:
        """Execute one run over the given sources.

        Raises:
            SeenStoreError: If new items cannot be marked as seen
        """
        start_time = datetime.now(timezone.utc)
        now = now or start_time
        result = PipelineResult(total_sources=len(sources))

        self.logger.info(f"Starting run over {len(sources)} sources")

        # Step 1: fetch everything
        with PerformanceLogger(self.logger, "fetch") as perf:
            fetch_results = await self.fetcher.fetch_sources(sources)
        result.fetch_time_seconds = perf.duration

        items = self._collect(fetch_results, result)
        result.items_fetched = len(items)

        if not items:
            self.logger.warning("No items fetched from any source")
            return self._finish(result, start_time)

        # Step 2: dedup against the seen store
        new_items = self.store.dedup(items, now=now)
        result.new_items = len(new_items)

        if not new_items:
            self.logger.info("No new items since the last run")
            return self._finish(result, start_time)

        # Step 3: mark seen before classification
        self.store.mark_seen(new_items, now=now)

        if self.orchestrator is None:
            return self._finish(result, start_time)

        # Step 4: triage, then analyze act_now items
        classify_start = datetime.now(timezone.utc)
        scored = await self.orchestrator.score_items(new_items)

        result.score_counts = {level.value: 0 for level in ScoreLevel}
        for item in scored:
            result.score_counts[item.score.value] += 1

        result.watch = [item for item in scored if item.score == ScoreLevel.WATCH]

        if self.analyze:
            result.analyzed = await self.orchestrator.analyze_items(scored)
        else:
            result.analyzed = [
                AnalyzedItem(**item.model_dump())
                for item in scored
                if item.score == ScoreLevel.ACT_NOW
            ]

        result.classification_time_seconds = (
            datetime.now(timezone.utc) - classify_start
        ).total_seconds()

        return self._finish(result, start_time)

    def _collect(self, fetch_results: List[FetchResult], result: PipelineResult) -> list:
        items = []
        for fetch_result in fetch_results:
            if fetch_result.success:
                result.successful_sources += 1
                items.extend(fetch_result.items)
            else:
                result.errors.append(f"{fetch_result.source_id}: {fetch_result.error}")

        self.logger.info(
            f"Collected {len(items)} items from "
            f"{result.successful_sources}/{result.total_sources} sources"
        )
        return items

    def _finish(self, result: PipelineResult, start_time: datetime) -> PipelineResult:
        result.total_time_seconds = (datetime.now(timezone.utc) - start_time).total_seconds()
        self.logger.info(
            f"Run complete: {result.items_fetched} fetched, {result.new_items} new, "
            f"{len(result.analyzed)} act_now, {len(result.watch)} watch "
            f"in {result.total_time_seconds:.2f}s"
        )
        return result
