"""Tests for slot coercion and name matching."""

from datetime import date
from decimal import Decimal

import pytest

from life_assistant.commands.categories import expand_terms, match_name
from life_assistant.commands.slots import (
    coerce_amount,
    coerce_date,
    coerce_metric,
    coerce_number,
    coerce_priority,
    resolve_period,
)
from life_assistant.errors import AmbiguityError, SlotValidationError
from life_assistant.models.command import Slot, SummaryMetric
from life_assistant.models.records import TodoPriority

from conftest import TODAY


MAX = Decimal("1000000")


class TestCoerceAmount:
    """Tests for coerce_amount()."""

    @pytest.mark.parametrize("value,expected", [
        ("45", Decimal("45.00")),
        ("$1,200.50", Decimal("1200.50")),
        ("12.346", Decimal("12.35")),
        ("45 dollars", Decimal("45.00")),
    ])
    def test_valid_amounts(self, value, expected):
        """Test symbols, separators and rounding to cents."""
        assert coerce_amount(value, MAX) == expected

    @pytest.mark.parametrize("value", ["0", "-5", "abc", "0.001", "1.2.3", "20 to 25", "1e3", "- 5"])
    def test_invalid_amounts(self, value):
        """Test that unusable amounts name the amount slot."""
        with pytest.raises(SlotValidationError) as exc_info:
            coerce_amount(value, MAX)
        assert exc_info.value.slot == "amount"

    def test_amount_over_limit(self):
        """Test the configured maximum."""
        with pytest.raises(SlotValidationError):
            coerce_amount("5000", Decimal("1000"))

    def test_coerce_number(self):
        """Test plain numbers for habit values."""
        assert coerce_number("2.5") == Decimal("2.5")
        with pytest.raises(SlotValidationError):
            coerce_number("lots")


class TestCoerceDate:
    """Tests for coerce_date(), with today a Sunday."""

    @pytest.mark.parametrize("value,expected", [
        ("today", date(2026, 10, 18)),
        ("Yesterday", date(2026, 10, 17)),
        ("tomorrow", date(2026, 10, 19)),
        ("2026-10-01", date(2026, 10, 1)),
        ("monday", date(2026, 10, 12)),
        ("friday", date(2026, 10, 16)),
        ("on friday", date(2026, 10, 16)),
        ("sunday", date(2026, 10, 18)),
        ("last sunday", date(2026, 10, 11)),
        ("next friday", date(2026, 10, 23)),
    ])
    def test_past_preferring(self, value, expected):
        """Test relative words, ISO dates and weekdays."""
        assert coerce_date(value, TODAY) == expected

    def test_future_preferring_weekday(self):
        """Test that due dates resolve a bare weekday forwards."""
        assert coerce_date("friday", TODAY, prefer_future=True) == date(2026, 10, 23)
        assert coerce_date("sunday", TODAY, prefer_future=True) == TODAY

    def test_unknown_date(self):
        """Test that gibberish names the date slot."""
        with pytest.raises(SlotValidationError) as exc_info:
            coerce_date("someday", TODAY)
        assert exc_info.value.slot == "date"


class TestResolvePeriod:
    """Tests for resolve_period()."""

    @pytest.mark.parametrize("value,expected", [
        ("today", (date(2026, 10, 18), date(2026, 10, 19), "today")),
        ("this week", (date(2026, 10, 12), date(2026, 10, 19), "this week")),
        ("last week", (date(2026, 10, 5), date(2026, 10, 12), "last week")),
        ("this month", (date(2026, 10, 1), date(2026, 11, 1), "this month")),
        ("last month", (date(2026, 9, 1), date(2026, 10, 1), "last month")),
        ("this year", (date(2026, 1, 1), date(2027, 1, 1), "this year")),
        ("march", (date(2026, 3, 1), date(2026, 4, 1), "March 2026")),
        ("december", (date(2025, 12, 1), date(2026, 1, 1), "December 2025")),
        ("2025", (date(2025, 1, 1), date(2026, 1, 1), "2025")),
    ])
    def test_periods(self, value, expected):
        """Test named periods as half-open ranges."""
        assert resolve_period(value, TODAY) == expected

    def test_unknown_period(self):
        """Test that an unknown period names the period slot."""
        with pytest.raises(SlotValidationError) as exc_info:
            resolve_period("a while ago", TODAY)
        assert exc_info.value.slot == "period"


class TestEnums:
    """Tests for metric and priority synonyms."""

    def test_metric_synonyms(self):
        """Test everyday words for summary metrics."""
        assert coerce_metric("spending") == SummaryMetric.EXPENSE
        assert coerce_metric("Habit streak") == SummaryMetric.HABIT_STREAK
        with pytest.raises(SlotValidationError):
            coerce_metric("weather")

    def test_priority_synonyms(self):
        """Test everyday words for priorities."""
        assert coerce_priority("Urgent") == TodoPriority.HIGH
        with pytest.raises(SlotValidationError):
            coerce_priority("whenever")


class TestMatchName:
    """Tests for fuzzy category and habit matching."""

    CATEGORIES = ["Dining", "Transport", "Shopping", "Salary"]

    def test_exact_match_ignores_case(self):
        """Test that an exact name wins outright."""
        assert match_name(Slot.CATEGORY, "dining", self.CATEGORIES) == "Dining"

    @pytest.mark.parametrize("value,expected", [
        ("lunch", "Dining"),
        ("coffee", "Dining"),
        ("taxi", "Transport"),
        ("new shoes", "Shopping"),
        ("paycheck", "Salary"),
    ])
    def test_everyday_words(self, value, expected):
        """Test keyword expansion to canonical categories."""
        assert match_name(Slot.CATEGORY, value, self.CATEGORIES) == expected

    def test_habit_substring(self):
        """Test partial habit names."""
        habits = ["Morning run", "Reading", "Drink water"]
        assert match_name(Slot.HABIT, "run", habits) == "Morning run"
        assert match_name(Slot.HABIT, "water", habits) == "Drink water"

    def test_tie_is_ambiguous(self):
        """Test that equally good matches are never guessed."""
        with pytest.raises(AmbiguityError) as exc_info:
            match_name(Slot.CATEGORY, "card", ["Credit card", "Debit card", "Dining"])
        assert exc_info.value.candidates == ["Credit card", "Debit card"]
        assert exc_info.value.slot == "category"

    def test_no_match(self):
        """Test that an unknown name is a validation error."""
        with pytest.raises(SlotValidationError) as exc_info:
            match_name(Slot.CATEGORY, "zebra", self.CATEGORIES)
        assert not isinstance(exc_info.value, AmbiguityError)

    def test_expand_terms(self):
        """Test that expansions keep order and drop repeats."""
        assert expand_terms("Lunch") == ["lunch", "dining", "food", "meal"]
