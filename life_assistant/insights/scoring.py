"""
Scoring & Sentiment Model

score(bundle) -> (score, sentiment)

Each domain's score is a weighted sum of sub-metrics, every sub-metric
clamped to [0, 1] before weighting, times 100 and rounded. Weights per
domain sum to 1, so the result is always within 0..100.

Sentiment is never computed here. It is read off the score through
Sentiment.from_score, which owns the thresholds.

DESIGN DECISION: An empty bundle scores (None, NEUTRAL). Zero activity
means "unknown", and a 0 would read as failure. For OVERALL, empty
domains are left out of the average rather than counted as zero.
"""

from typing import Callable, Optional

from life_assistant.models.insight import MetricBundle, Module, Sentiment


# Finance: a savings rate at or above this counts as fully healthy.
TARGET_SAVINGS_RATE = 0.2
# Finance: budget adherence assumed when nothing is budgeted.
UNBUDGETED_ADHERENCE = 0.5
# Habit: a streak this long counts as fully healthy.
TARGET_STREAK_DAYS = 7
# Diary: mood contribution assumed when no entry is rated.
UNRATED_MOOD = 0.5


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _finance(bundle: MetricBundle) -> list[tuple[float, float]]:
    if bundle.get("budgeted_count") > 0:
        adherence = bundle.get("on_budget_ratio")
    else:
        adherence = UNBUDGETED_ADHERENCE
    if bundle.get("income_total") > 0:
        savings = bundle.get("savings_rate") / TARGET_SAVINGS_RATE
    else:
        savings = 0.0
    solvent = 1.0 if bundle.get("balance") >= 0 else 0.0
    return [
        (0.5, adherence),
        (0.3, savings),
        (0.2, solvent),
    ]


def _productivity(bundle: MetricBundle) -> list[tuple[float, float]]:
    overdue_share = bundle.get("overdue_count") / bundle.record_count
    return [
        (0.6, bundle.get("completion_rate")),
        (0.4, 1.0 - overdue_share),
    ]


def _habit(bundle: MetricBundle) -> list[tuple[float, float]]:
    return [
        (0.7, bundle.get("completion_rate")),
        (0.3, bundle.get("current_streak") / TARGET_STREAK_DAYS),
    ]


def _diary(bundle: MetricBundle) -> list[tuple[float, float]]:
    if bundle.get("rated_count") > 0:
        mood = (bundle.get("average_mood") - 1) / 4
    else:
        mood = UNRATED_MOOD
    return [
        (0.4, bundle.get("days_written_ratio")),
        (0.6, mood),
    ]


def _savings(bundle: MetricBundle) -> list[tuple[float, float]]:
    return [
        (0.5, bundle.get("average_progress")),
        (0.5, bundle.get("deposit_ratio")),
    ]


SCORING_RULES: dict[Module, Callable[[MetricBundle], list[tuple[float, float]]]] = {
    Module.FINANCE: _finance,
    Module.PRODUCTIVITY: _productivity,
    Module.HABIT: _habit,
    Module.DIARY: _diary,
    Module.SAVINGS: _savings,
}


def _weighted(components: list[tuple[float, float]]) -> int:
    total = sum(weight * clamp(value) for weight, value in components)
    return int(clamp(round(total * 100), 0, 100))


def score(bundle: MetricBundle) -> tuple[Optional[int], Sentiment]:
    """
    Score a bundle.

    For OVERALL the bundle's metrics are the scores of the non-empty
    domains keyed by domain value, and the score is their plain mean.

    Returns:
        (score, sentiment); score is None when there is nothing to score
    """
    if bundle.is_empty:
        return None, Sentiment.NEUTRAL

    if bundle.module is Module.OVERALL:
        values = list(bundle.metrics.values())
        value = int(clamp(round(sum(values) / len(values)), 0, 100))
    else:
        value = _weighted(SCORING_RULES[bundle.module](bundle))

    return value, Sentiment.from_score(value)
