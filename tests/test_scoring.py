"""Tests for the scoring and sentiment model."""

import pytest
from datetime import timedelta

from life_assistant.insights.extractors import extract, extract_finance
from life_assistant.insights.scoring import clamp, score
from life_assistant.models.insight import MetricBundle, Module, Sentiment

from conftest import TODAY, expense, income


START = TODAY.replace(day=1)
END = TODAY + timedelta(days=1)


def _bundle(module: Module, **metrics) -> MetricBundle:
    return MetricBundle(module=module, metrics=metrics, window_start=START, window_end=END)


class TestEmptyInput:
    """Tests for the insufficient-data branch."""

    @pytest.mark.parametrize("module", Module.domains())
    def test_empty_domain_has_no_score(self, module):
        """Test that no records gives (None, NEUTRAL)."""
        assert score(extract(module, [], START, END)) == (None, Sentiment.NEUTRAL)

    def test_empty_overall_has_no_score(self):
        """Test that OVERALL with no scored domains gives (None, NEUTRAL)."""
        assert score(_bundle(Module.OVERALL)) == (None, Sentiment.NEUTRAL)


class TestFinanceScore:
    """Tests for finance scoring."""

    def test_mostly_on_budget_is_not_negative(self):
        """Test 10 expenses, 8 within budget and 2 over."""
        records = [expense("10.00", within_budget=True) for _ in range(8)]
        records += [expense("10.00", within_budget=False) for _ in range(2)]

        value, sentiment = score(extract_finance(records, START, END))

        assert value == 40
        assert sentiment in (Sentiment.NEUTRAL, Sentiment.POSITIVE)

    def test_on_budget_with_savings_is_positive(self):
        """Test that the same spending with healthy income scores well."""
        records = [expense("10.00", within_budget=True) for _ in range(8)]
        records += [expense("10.00", within_budget=False) for _ in range(2)]
        records.append(income("1000.00"))

        value, sentiment = score(extract_finance(records, START, END))

        # 0.5 * 0.8 + 0.3 * 1 + 0.2 * 1
        assert value == 90
        assert sentiment == Sentiment.POSITIVE

    def test_outlier_metric_cannot_exceed_range(self):
        """Test that sub-metrics are clamped before weighting."""
        bundle = _bundle(
            Module.FINANCE,
            record_count=1.0,
            income_total=100.0,
            savings_rate=50.0,
            budgeted_count=1.0,
            on_budget_ratio=3.0,
            balance=100.0,
        )
        assert score(bundle)[0] == 100


class TestDomainScores:
    """Tests for the other domain rules."""

    def test_productivity(self):
        """Test completion and overdue weighting."""
        bundle = _bundle(
            Module.PRODUCTIVITY,
            record_count=4.0,
            completion_rate=0.5,
            overdue_count=2.0,
        )
        # 0.6 * 0.5 + 0.4 * 0.5
        assert score(bundle) == (50, Sentiment.NEUTRAL)

    def test_habit(self):
        """Test completion and streak weighting."""
        bundle = _bundle(
            Module.HABIT,
            record_count=7.0,
            completion_rate=1.0,
            current_streak=14.0,
        )
        assert score(bundle) == (100, Sentiment.POSITIVE)

    def test_diary_without_moods(self):
        """Test that unrated entries use the neutral mood contribution."""
        bundle = _bundle(
            Module.DIARY,
            record_count=1.0,
            days_written_ratio=0.0,
            rated_count=0.0,
        )
        # 0.6 * 0.5
        assert score(bundle) == (30, Sentiment.NEGATIVE)

    def test_savings(self):
        """Test progress and deposit weighting."""
        bundle = _bundle(
            Module.SAVINGS,
            record_count=2.0,
            average_progress=0.6,
            deposit_ratio=1.0,
        )
        assert score(bundle) == (80, Sentiment.POSITIVE)


class TestOverallScore:
    """Tests for the OVERALL composite."""

    def test_mean_of_present_domains(self):
        """Test the equal-weight average over scored domains only."""
        bundle = _bundle(Module.OVERALL, finance=90.0, habit=40.0)
        assert score(bundle) == (65, Sentiment.NEUTRAL)

    def test_sentiment_always_matches_score(self):
        """Test consistency for a spread of composites."""
        for value in range(0, 101, 5):
            result, sentiment = score(_bundle(Module.OVERALL, diary=float(value)))
            assert result == value
            assert sentiment == Sentiment.from_score(value)


class TestClamp:
    """Tests for clamp."""

    def test_clamp(self):
        """Test clamping to [0, 1]."""
        assert clamp(-0.5) == 0.0
        assert clamp(1.5) == 1.0
        assert clamp(0.25) == 0.25
