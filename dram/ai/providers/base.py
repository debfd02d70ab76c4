"""
Base Classification Provider
============================

Abstract interface for classification backends plus the tolerant JSON
extraction every text-producing backend needs.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ...models import RawItem, ScoredItem
from ...utils.exceptions import ClassificationError, ErrorCode

FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def parse_json_response(raw: str) -> Any:
    """Parse JSON out of a model response.

    Markdown fences are removed and any preamble before the first ``[`` or
    ``{`` is skipped.

    Raises:
        ClassificationError: If the response holds no parseable JSON
    """
    if not isinstance(raw, str):
        raise ClassificationError(
            "Response is not text", error_code=ErrorCode.AI_INVALID_RESPONSE
        )

    cleaned = FENCE_PATTERN.sub("", raw).strip()

    if not cleaned.startswith(("[", "{")):
        starts = [pos for pos in (cleaned.find("["), cleaned.find("{")) if pos != -1]
        if not starts:
            raise ClassificationError(
                f"No JSON found in response: {cleaned[:80]}",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )
        cleaned = cleaned[min(starts):]

    try:
        # raw_decode tolerates trailing chatter after the JSON value
        value, _ = json.JSONDecoder().raw_decode(cleaned)
    except ValueError as e:
        raise ClassificationError(
            f"Invalid JSON in response: {e}", error_code=ErrorCode.AI_INVALID_RESPONSE
        ) from e

    return value


class ClassificationProvider(ABC):
    """Abstract base class for classification backends."""

    name = "base"

    @abstractmethod
    async def score_batch(self, items: List[RawItem]) -> List[Dict[str, Any]]:
        """Score an ordered batch of items.

        Args:
            items: Batch to score

        Returns:
            One mapping per item, positionally aligned with the input, each
            holding ``score`` and ``reason`` and optionally ``index``

        Raises:
            ClassificationError: If the batch cannot be scored
        """
        pass

    @abstractmethod
    async def analyze(self, item: ScoredItem) -> Dict[str, Any]:
        """Produce a deep analysis of one item.

        Returns:
            Mapping with ``whatHappened``, ``whyItMatters`` and ``whatsTheMove``

        Raises:
            ClassificationError: If analysis fails
        """
        pass

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"
