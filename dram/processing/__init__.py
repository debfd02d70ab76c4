"""
Dram Processing Module
======================

Run-level components: concurrent fetching, triage orchestration and
the pipeline that composes them with the seen store.
"""

from .feed_fetcher import FeedFetcher, FetchResult
from .triage import TriageOrchestrator
from .pipeline import IngestionPipeline, PipelineResult

__all__ = [
    'FeedFetcher',
    'FetchResult',
    'TriageOrchestrator',
    'IngestionPipeline',
    'PipelineResult',
]
