"""
Dram Data Models
================

Pydantic models for sources and the items that flow through a run.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class SourceType(str, Enum):
    """How a source is fetched and parsed."""
    FEED = "feed"
    WEB = "web"


class SignalCategory(str, Enum):
    """Closed set of source categories."""
    SECURITY_TRAINING = "security_training"
    AI_DEV_TOOLS = "ai_dev_tools"
    CRYPTO_RWA = "crypto_rwa"


class ScoreLevel(str, Enum):
    """Triage labels, from least to most actionable."""
    IGNORE = "ignore"
    WATCH = "watch"
    ACT_NOW = "act_now"


class FeedSource(BaseModel):
    """A configured origin polled once per run."""
    id: str = Field(..., min_length=1, description="Unique source ID")
    name: str = Field(..., min_length=1, description="Display name")
    type: SourceType = Field(..., description="feed for RSS/Atom, web for HTML listing pages")
    url: str = Field(..., min_length=1, description="Feed or listing page URL")
    category: SignalCategory = Field(..., description="Source category")

    model_config = {"frozen": True}

    @field_validator('type', mode='before')
    @classmethod
    def accept_rss_alias(cls, v):
        """Older catalogs call feed sources 'rss'."""
        if isinstance(v, str) and v.lower() == "rss":
            return SourceType.FEED
        return v

    @property
    def is_web(self) -> bool:
        return self.type == SourceType.WEB

    def __str__(self) -> str:
        return f"FeedSource({self.id})"


class RawItem(BaseModel):
    """One normalized item, identified by its URL."""
    source_id: str
    source_name: str
    category: SignalCategory
    url: str = Field(..., min_length=1, description="Stable item identity")
    title: str = Field(..., min_length=1, description="Sanitized title")
    summary: str = Field(default="", description="Sanitized summary")
    published_at: str = Field(..., description="Source publication time, or fetch time in ISO-8601")

    def __str__(self) -> str:
        return f"RawItem({self.title[:50]})"


class ScoredItem(RawItem):
    """Item labelled by triage."""
    score: ScoreLevel
    score_reason: str = ""


class AnalyzedItem(ScoredItem):
    """act_now item with deep analysis attached."""
    what_happened: str = ""
    why_it_matters: str = ""
    whats_the_move: str = ""
