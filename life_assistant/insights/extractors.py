"""
Metric Extractors

One pure function per life domain. Each takes the records the domain
repository returned for a half-open window [start, end) and reduces them
to a MetricBundle with a fixed set of metric names.

CRITICAL: An extractor never fails on empty input. No records means a
bundle with every count at zero and every rate at 0.0; the scoring model
reads record_count == 0 as "insufficient data".

Extractors do not filter by date themselves. The repository already
returned exactly the window; the window is passed along only to be
stamped on the bundle (and, for streaks and overdue checks, to know
which day is "today").
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

from life_assistant.models.insight import MetricBundle, Module
from life_assistant.models.records import (
    DiaryRecord,
    HabitCheckinRecord,
    SavingsRecord,
    TodoPriority,
    TodoRecord,
    TransactionRecord,
    TransactionType,
)


def _ratio(part: float, whole: float) -> float:
    return part / whole if whole else 0.0


def _last_day(end: date) -> date:
    """The last calendar day inside [start, end)."""
    return end - timedelta(days=1)


def consecutive_days(days: set[date], through: date) -> int:
    """
    Count consecutive days in `days` ending at `through`, walking backward.

    A gap on `through` itself means the streak is zero.
    """
    streak = 0
    current = through
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


def extract_finance(
    records: list[TransactionRecord],
    start: date,
    end: date,
) -> MetricBundle:
    """
    Finance metrics.

    savings_rate is balance over income (0.0 without income). The
    budget ratios count only expenses the budget owner flagged one way
    or the other; unbudgeted expenses are left out of both.
    """
    income = sum(
        (r.amount for r in records if r.transaction_type == TransactionType.INCOME),
        Decimal("0"),
    )
    expenses = [r for r in records if r.transaction_type == TransactionType.EXPENSE]
    expense = sum((r.amount for r in expenses), Decimal("0"))
    balance = income - expense

    budgeted = [r for r in expenses if r.within_budget is not None]
    on_budget = sum(1 for r in budgeted if r.within_budget)
    over_budget = len(budgeted) - on_budget

    return MetricBundle(
        module=Module.FINANCE,
        metrics={
            "record_count": float(len(records)),
            "income_total": float(income),
            "expense_total": float(expense),
            "balance": float(balance),
            "savings_rate": _ratio(float(balance), float(income)),
            "budgeted_count": float(len(budgeted)),
            "on_budget_count": float(on_budget),
            "over_budget_count": float(over_budget),
            "on_budget_ratio": _ratio(on_budget, len(budgeted)),
            "over_budget_ratio": _ratio(over_budget, len(budgeted)),
        },
        window_start=start,
        window_end=end,
    )


def extract_productivity(
    records: list[TodoRecord],
    start: date,
    end: date,
) -> MetricBundle:
    """Task completion, overdue work and open high-priority tasks."""
    today = _last_day(end)
    completed = sum(1 for r in records if r.completed)
    overdue = sum(1 for r in records if r.is_overdue(today))
    open_high = sum(
        1 for r in records
        if not r.completed and r.priority == TodoPriority.HIGH
    )

    return MetricBundle(
        module=Module.PRODUCTIVITY,
        metrics={
            "record_count": float(len(records)),
            "completed_count": float(completed),
            "completion_rate": _ratio(completed, len(records)),
            "overdue_count": float(overdue),
            "open_high_priority_count": float(open_high),
        },
        window_start=start,
        window_end=end,
    )


def extract_habit(
    records: list[HabitCheckinRecord],
    start: date,
    end: date,
) -> MetricBundle:
    """
    Habit check-in metrics.

    completion_rate is completed check-ins over the check-ins that were
    possible: every habit seen in the window, once per day of the window.
    current_streak is the best per-habit streak ending on the window's
    last day.
    """
    # A habit with only missed check-ins still counts as tracked
    days_by_habit: dict[str, set[date]] = {}
    completed = 0
    for record in records:
        days = days_by_habit.setdefault(record.habit_id, set())
        if record.completed:
            completed += 1
            days.add(record.checked_on)

    window_days = (end - start).days
    possible = len(days_by_habit) * window_days
    today = _last_day(end)
    streak = max(
        (consecutive_days(days, today) for days in days_by_habit.values()),
        default=0,
    )

    return MetricBundle(
        module=Module.HABIT,
        metrics={
            "record_count": float(len(records)),
            "habit_count": float(len(days_by_habit)),
            "completed_count": float(completed),
            "completion_rate": min(1.0, _ratio(completed, possible)),
            "current_streak": float(streak),
        },
        window_start=start,
        window_end=end,
    )


def extract_diary(
    records: list[DiaryRecord],
    start: date,
    end: date,
) -> MetricBundle:
    """Writing regularity and mood. average_mood is 0.0 when nothing is rated."""
    days_written = len({r.entry_date for r in records})
    moods = [r.mood for r in records if r.mood is not None]

    return MetricBundle(
        module=Module.DIARY,
        metrics={
            "record_count": float(len(records)),
            "days_written": float(days_written),
            "days_written_ratio": min(1.0, _ratio(days_written, (end - start).days)),
            "rated_count": float(len(moods)),
            "average_mood": _ratio(sum(moods), len(moods)),
            "total_words": float(sum(r.word_count for r in records)),
        },
        window_start=start,
        window_end=end,
    )


def extract_savings(
    records: list[SavingsRecord],
    start: date,
    end: date,
) -> MetricBundle:
    """
    Savings movements and plan progress.

    Plan progress uses the latest record seen for each plan, since the
    plan's current amount travels with every movement.
    """
    deposits = sum((r.amount for r in records if r.is_deposit), Decimal("0"))
    withdrawals = sum((-r.amount for r in records if not r.is_deposit), Decimal("0"))

    latest: dict[str, SavingsRecord] = {}
    for record in sorted(records, key=lambda r: r.occurred_on):
        latest[record.plan_id] = record
    progress = [
        min(1.0, float(r.current_amount / r.target_amount))
        for r in latest.values()
    ]

    return MetricBundle(
        module=Module.SAVINGS,
        metrics={
            "record_count": float(len(records)),
            "deposit_total": float(deposits),
            "withdrawal_total": float(withdrawals),
            "net_saved": float(deposits - withdrawals),
            "deposit_ratio": _ratio(float(deposits), float(deposits + withdrawals)),
            "plan_count": float(len(latest)),
            "average_progress": _ratio(sum(progress), len(progress)),
        },
        window_start=start,
        window_end=end,
    )


EXTRACTORS: dict[Module, Callable[[list, date, date], MetricBundle]] = {
    Module.FINANCE: extract_finance,
    Module.PRODUCTIVITY: extract_productivity,
    Module.HABIT: extract_habit,
    Module.DIARY: extract_diary,
    Module.SAVINGS: extract_savings,
}


def extract(module: Module, records: list, start: date, end: date) -> MetricBundle:
    """
    Dispatch to the extractor for a domain.

    Raises:
        KeyError: For OVERALL, which is composed from domain scores
                  rather than extracted from records
    """
    if module not in EXTRACTORS:
        raise KeyError(f"No extractor for module {module.value}")
    return EXTRACTORS[module](records, start, end)
