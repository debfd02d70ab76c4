"""
Triage Orchestrator
===================

Splits new items into fixed-size batches, scores each batch with one
provider call and keeps results positionally aligned with the input.

An item the provider could not label is kept as ``watch``, never dropped
or ignored.
"""

from typing import Any, List

from ..ai.providers.base import ClassificationProvider
from ..models import AnalyzedItem, RawItem, ScoreLevel, ScoredItem
from ..utils.logging import get_logger_for_component

DEFAULT_BATCH_SIZE = 10

BATCH_FAILED_REASON = "Scoring failed, defaulting to watch"
UNALIGNED_REASON = "No aligned score returned, defaulting to watch"
ANALYSIS_FAILED_MOVE = "Analysis failed, review the source directly."


class TriageOrchestrator:
    """Batches items through a ClassificationProvider."""

    def __init__(self, provider: ClassificationProvider, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.provider = provider
        self.batch_size = batch_size
        self.logger = get_logger_for_component("triage")

    def _batches(self, items: List[RawItem]):
        for start in range(0, len(items), self.batch_size):
            yield items[start:start + self.batch_size]

    @staticmethod
    def _with_score(item: RawItem, score: ScoreLevel, reason: str) -> ScoredItem:
        return ScoredItem(**item.model_dump(), score=score, score_reason=reason)

    def _aligned_score(self, item: RawItem, position: int, result: Any) -> ScoredItem:
        """Turn one provider result into a ScoredItem, defaulting when unusable."""
        if not isinstance(result, dict):
            return self._with_score(item, ScoreLevel.WATCH, UNALIGNED_REASON)

        # An explicit index must agree with the result's position
        index = result.get("index")
        if index is not None and (isinstance(index, bool) or index != position):
            return self._with_score(item, ScoreLevel.WATCH, UNALIGNED_REASON)

        try:
            score = ScoreLevel(result.get("score"))
        except ValueError:
            return self._with_score(item, ScoreLevel.WATCH, UNALIGNED_REASON)

        reason = result.get("reason")
        return self._with_score(item, score, reason if isinstance(reason, str) else "")

    async def score_items(self, items: List[RawItem]) -> List[ScoredItem]:
        """Score items in batches; output order equals input order."""
        if not items:
            return []

        scored: List[ScoredItem] = []

        for batch_number, batch in enumerate(self._batches(items), start=1):
            try:
                results = await self.provider.score_batch(batch)
            except Exception as e:
                self.logger.error(f"Scoring batch {batch_number} failed: {e}")
                scored.extend(
                    self._with_score(item, ScoreLevel.WATCH, BATCH_FAILED_REASON)
                    for item in batch
                )
                continue

            if not isinstance(results, list):
                results = []
            if len(results) != len(batch):
                self.logger.warning(
                    f"Batch {batch_number}: {len(results)} results for {len(batch)} items"
                )

            for position, item in enumerate(batch):
                result = results[position] if position < len(results) else None
                scored.append(self._aligned_score(item, position, result))

        counts = {level: 0 for level in ScoreLevel}
        for item in scored:
            counts[item.score] += 1
        self.logger.info(
            f"Scored {len(scored)} items: "
            f"{counts[ScoreLevel.ACT_NOW]} act_now, "
            f"{counts[ScoreLevel.WATCH]} watch, "
            f"{counts[ScoreLevel.IGNORE]} ignore"
        )

        return scored

    async def analyze_item(self, item: ScoredItem) -> AnalyzedItem:
        """Attach a deep analysis to one item, falling back to its own text."""
        try:
            analysis = await self.provider.analyze(item)
            return AnalyzedItem(
                **item.model_dump(),
                what_happened=str(analysis.get("whatHappened") or ""),
                why_it_matters=str(analysis.get("whyItMatters") or ""),
                whats_the_move=str(analysis.get("whatsTheMove") or ""),
            )
        except Exception as e:
            self.logger.error(f"Analysis failed for '{item.title[:60]}': {e}")
            return AnalyzedItem(
                **item.model_dump(),
                what_happened=item.summary,
                why_it_matters=item.score_reason,
                whats_the_move=ANALYSIS_FAILED_MOVE,
            )

    async def analyze_items(self, items: List[ScoredItem]) -> List[AnalyzedItem]:
        """Analyze every act_now item, one provider call at a time."""
        actionable = [item for item in items if item.score == ScoreLevel.ACT_NOW]
        analyzed = []
        for item in actionable:
            analyzed.append(await self.analyze_item(item))
        return analyzed
