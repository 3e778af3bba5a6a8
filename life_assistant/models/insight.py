"""
Insight Models

The artifacts of the insight pipeline:

    domain records -> MetricBundle -> (score, sentiment) -> AnalysisDetails -> Analysis

DESIGN DECISION: The sentiment thresholds live on Sentiment.from_score and
nowhere else. Analysis refuses to be constructed with a score/sentiment
pair that disagrees with them.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Score bands. POSITIVE at or above the first, NEGATIVE below the second.
POSITIVE_THRESHOLD = 70
NEUTRAL_THRESHOLD = 40

MAX_DETAIL_ITEMS = 3


class Module(str, Enum):
    """
    Life-management domains, plus the OVERALL composite.

    Adding a domain means adding an extractor, a scoring rule and a
    template table entry for it.
    """
    FINANCE = "finance"
    PRODUCTIVITY = "productivity"
    HABIT = "habit"
    DIARY = "diary"
    SAVINGS = "savings"
    OVERALL = "overall"

    @classmethod
    def domains(cls) -> list["Module"]:
        """All modules except OVERALL, in display order."""
        return [m for m in cls if m is not cls.OVERALL]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Sentiment(str, Enum):
    """Three-way qualitative read of a score."""
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"

    @classmethod
    def from_score(cls, score: Optional[int]) -> "Sentiment":
        """
        Derive sentiment from a 0-100 score.

        This is the only place the thresholds are applied. A missing
        score means "unknown", which reads as NEUTRAL.
        """
        if score is None:
            return cls.NEUTRAL
        if score >= POSITIVE_THRESHOLD:
            return cls.POSITIVE
        if score >= NEUTRAL_THRESHOLD:
            return cls.NEUTRAL
        return cls.NEGATIVE


class MetricBundle(BaseModel):
    """
    Named metrics for one domain over a half-open window [start, end).

    Created fresh on every extraction and never persisted. For OVERALL
    the metrics are the per-domain scores of the non-empty domains,
    keyed by domain value.
    """
    model_config = ConfigDict(frozen=True)

    module: Module
    metrics: dict[str, float] = Field(default_factory=dict)
    window_start: date
    window_end: date

    @model_validator(mode='after')
    def validate_window(self) -> 'MetricBundle':
        if self.window_end <= self.window_start:
            raise ValueError("Window end must be after window start")
        return self

    def get(self, name: str, default: float = 0.0) -> float:
        return self.metrics.get(name, default)

    @property
    def record_count(self) -> int:
        return int(self.metrics.get("record_count", 0))

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to score."""
        if self.module is Module.OVERALL:
            return not self.metrics
        return self.record_count == 0

    @property
    def window_days(self) -> int:
        return (self.window_end - self.window_start).days


class AnalysisDetails(BaseModel):
    """
    Structured payload shown under an analysis.

    Plain data only, so it serializes to JSON without further work.
    """
    model_config = ConfigDict(frozen=True)

    suggestions: list[str] = Field(default_factory=list, max_length=MAX_DETAIL_ITEMS)
    highlights: list[str] = Field(default_factory=list, max_length=MAX_DETAIL_ITEMS)
    warnings: list[str] = Field(default_factory=list, max_length=MAX_DETAIL_ITEMS)
    motivation: Optional[str] = Field(
        default=None,
        description="Shown only for NEGATIVE sentiment"
    )
    encouragement: Optional[str] = Field(
        default=None,
        description="Shown only for POSITIVE sentiment"
    )
    top_priority: Optional[str] = Field(
        default=None,
        description="The area that most needs attention"
    )

    @model_validator(mode='after')
    def validate_single_closing_line(self) -> 'AnalysisDetails':
        if self.motivation and self.encouragement:
            raise ValueError("Details carry a motivation or an encouragement, not both")
        return self


class Analysis(BaseModel):
    """
    The cached insight for one module.

    Written only by the insight engine, read-only everywhere else.
    One live Analysis per module; a refresh overwrites it.
    """
    model_config = ConfigDict(frozen=True)

    module: Module
    score: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Health score; None when there was not enough data"
    )
    sentiment: Sentiment
    title: str = Field(..., min_length=1, max_length=120)
    content: str = Field(..., min_length=1)
    details: AnalysisDetails = Field(default_factory=AnalysisDetails)
    period_start: date
    period_end: date
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode='after')
    def validate_sentiment_matches_score(self) -> 'Analysis':
        """An artifact may never show a sentiment its score does not earn."""
        if self.score is not None and self.sentiment is not Sentiment.from_score(self.score):
            raise ValueError(
                f"Sentiment {self.sentiment.value} is inconsistent with score {self.score}"
            )
        return self

    @property
    def has_score(self) -> bool:
        return self.score is not None
