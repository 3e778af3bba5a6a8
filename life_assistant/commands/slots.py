"""
Slot Coercion

Turns the loose strings from the classification call into typed values.

This is DETERMINISTIC - no LLM involvement. Relative dates resolve
against the `today` the caller passes in, never the wall clock.

Every helper raises SlotValidationError naming its slot when the value
cannot be used; the parser turns that into a clarification.
"""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from life_assistant.errors import SlotValidationError
from life_assistant.models.command import Slot, SummaryMetric
from life_assistant.models.records import TodoPriority


_CENTS = Decimal("0.01")
_AMOUNT_TOKEN = re.compile(r"\d[\d,]*(?:\.\d+)?")

WEEKDAYS = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
    "mon": 0, "tue": 1, "tues": 1, "wed": 2, "thu": 3, "thur": 3, "thurs": 3,
    "fri": 4, "sat": 5, "sun": 6,
}

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
}

_WEEKDAY_PATTERN = re.compile(r"^(?:on\s+)?(last|next|this)?\s*([a-z]+)$")

METRIC_SYNONYMS: dict[str, SummaryMetric] = {
    "expense": SummaryMetric.EXPENSE,
    "expenses": SummaryMetric.EXPENSE,
    "spending": SummaryMetric.EXPENSE,
    "spend": SummaryMetric.EXPENSE,
    "spent": SummaryMetric.EXPENSE,
    "income": SummaryMetric.INCOME,
    "earnings": SummaryMetric.INCOME,
    "earned": SummaryMetric.INCOME,
    "balance": SummaryMetric.BALANCE,
    "net": SummaryMetric.BALANCE,
    "habit_streak": SummaryMetric.HABIT_STREAK,
    "streak": SummaryMetric.HABIT_STREAK,
    "habits": SummaryMetric.HABIT_STREAK,
    "savings_progress": SummaryMetric.SAVINGS_PROGRESS,
    "savings": SummaryMetric.SAVINGS_PROGRESS,
    "todo_progress": SummaryMetric.TODO_PROGRESS,
    "todos": SummaryMetric.TODO_PROGRESS,
    "tasks": SummaryMetric.TODO_PROGRESS,
    "task_progress": SummaryMetric.TODO_PROGRESS,
}

PRIORITY_SYNONYMS: dict[str, TodoPriority] = {
    "high": TodoPriority.HIGH,
    "urgent": TodoPriority.HIGH,
    "important": TodoPriority.HIGH,
    "medium": TodoPriority.MEDIUM,
    "normal": TodoPriority.MEDIUM,
    "low": TodoPriority.LOW,
    "none": TodoPriority.NONE,
}


def coerce_amount(value: str, max_amount: Decimal) -> Decimal:
    """
    Parse a positive money amount, rounded to cents.

    Currency symbols, thousands separators and trailing words
    ("45 dollars") are ignored. The value must hold exactly one
    number, so "20 to 25" or "1e3" is rejected rather than merged.
    """
    tokens = _AMOUNT_TOKEN.findall(value)
    if len(tokens) != 1:
        raise SlotValidationError(Slot.AMOUNT.value, f"'{value}' is not an amount")
    if re.search(r"-\s*" + re.escape(tokens[0]), value):
        raise SlotValidationError(Slot.AMOUNT.value, "Amount must be greater than zero")
    try:
        amount = Decimal(tokens[0].replace(",", ""))
    except InvalidOperation:
        raise SlotValidationError(Slot.AMOUNT.value, f"'{value}' is not an amount")

    if not amount.is_finite() or amount <= 0:
        raise SlotValidationError(Slot.AMOUNT.value, "Amount must be greater than zero")
    if amount > max_amount:
        raise SlotValidationError(Slot.AMOUNT.value, f"Amount {amount} is larger than {max_amount}")

    amount = amount.quantize(_CENTS)
    if amount <= 0:
        raise SlotValidationError(Slot.AMOUNT.value, "Amount rounds to zero")
    return amount


def coerce_number(value: str, slot: Slot = Slot.VALUE) -> Decimal:
    """Parse a plain number (habit values)."""
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        raise SlotValidationError(slot.value, f"'{value}' is not a number")
    if not number.is_finite():
        raise SlotValidationError(slot.value, f"'{value}' is not a number")
    return number


def _resolve_weekday(qualifier: Optional[str], weekday: int, today: date, prefer_future: bool) -> date:
    days_back = (today.weekday() - weekday) % 7
    days_ahead = (weekday - today.weekday()) % 7

    if qualifier == "last":
        return today - timedelta(days=days_back or 7)
    if qualifier == "next":
        return today + timedelta(days=days_ahead or 7)
    if prefer_future:
        return today + timedelta(days=days_ahead)
    return today - timedelta(days=days_back)


def coerce_date(value: str, today: date, prefer_future: bool = False) -> date:
    """
    Resolve a date slot.

    Accepts ISO dates, today / yesterday / tomorrow, "day before
    yesterday", "day after tomorrow", and weekday names with an optional
    last / next / this.

    A bare weekday means the most recent such day (today included) for
    past events, or the coming one (today included) when prefer_future
    is set, as for due dates.
    """
    text = " ".join(value.lower().split())

    relative = {
        "today": 0,
        "now": 0,
        "yesterday": -1,
        "tomorrow": 1,
        "day before yesterday": -2,
        "the day before yesterday": -2,
        "day after tomorrow": 2,
        "the day after tomorrow": 2,
    }
    if text in relative:
        return today + timedelta(days=relative[text])

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    match = _WEEKDAY_PATTERN.match(text)
    if match and match.group(2) in WEEKDAYS:
        return _resolve_weekday(match.group(1), WEEKDAYS[match.group(2)], today, prefer_future)

    raise SlotValidationError(Slot.DATE.value, f"Could not work out which day '{value}' is")


def _month_range(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    if month == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month + 1, 1)


def resolve_period(value: str, today: date) -> tuple[date, date, str]:
    """
    Convert a natural language period to a half-open date range.

    Returns:
        (start, end_exclusive, label)
    """
    text = " ".join(value.lower().split())

    if text == "today":
        return today, today + timedelta(days=1), "today"

    if text == "yesterday":
        return today - timedelta(days=1), today, "yesterday"

    # Weeks start on Monday
    if text in ("this week", "current week"):
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=7), "this week"

    if text in ("last week", "previous week"):
        start = today - timedelta(days=today.weekday() + 7)
        return start, start + timedelta(days=7), "last week"

    if text in ("this month", "current month"):
        start, end = _month_range(today.year, today.month)
        return start, end, "this month"

    if text in ("last month", "previous month"):
        end = today.replace(day=1)
        start = (end - timedelta(days=1)).replace(day=1)
        return start, end, "last month"

    if text in ("this year", "current year"):
        return date(today.year, 1, 1), date(today.year + 1, 1, 1), "this year"

    if text in ("last year", "previous year"):
        return date(today.year - 1, 1, 1), date(today.year, 1, 1), "last year"

    for month_name, month_num in MONTHS.items():
        if month_name in text:
            # A month later in the year than today must mean last year
            year = today.year if month_num <= today.month else today.year - 1
            start, end = _month_range(year, month_num)
            return start, end, f"{month_name.capitalize()} {year}"

    year_match = re.fullmatch(r"(?:in\s+)?((?:19|20)\d{2})", text)
    if year_match:
        year = int(year_match.group(1))
        return date(year, 1, 1), date(year + 1, 1, 1), str(year)

    raise SlotValidationError(Slot.PERIOD.value, f"Could not work out the period '{value}'")


def coerce_metric(value: str) -> SummaryMetric:
    key = "_".join(value.lower().replace("-", " ").split())
    if key in METRIC_SYNONYMS:
        return METRIC_SYNONYMS[key]
    raise SlotValidationError(Slot.METRIC.value, f"'{value}' is not something I can summarize")


def coerce_priority(value: str) -> TodoPriority:
    key = value.strip().lower()
    if key in PRIORITY_SYNONYMS:
        return PRIORITY_SYNONYMS[key]
    raise SlotValidationError(Slot.PRIORITY.value, f"'{value}' is not a priority")
