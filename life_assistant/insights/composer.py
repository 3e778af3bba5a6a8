"""
Insight Composer

Turns (module, score, sentiment, bundle) into the text of an Analysis:
a title, a one-paragraph summary and the structured details payload.

DESIGN DECISION: Every choice here is a table lookup, not a branch.
- FLAG_RULES: per-domain metric thresholds. A rule that fires adds a
  highlight or a warning and names a flag.
- SUGGESTIONS: keyed by (module, sentiment, flag). A flag-specific entry
  wins over a (module, None, flag) entry; the (module, sentiment, None)
  entry is the generic fallback.
- TITLES / SUMMARIES / MOTIVATION / ENCOURAGEMENT: per module.

Adding a domain means adding table entries. The composer is pure: the
same inputs always give identical output, down to list order.
"""

import operator
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from life_assistant.models.insight import (
    MAX_DETAIL_ITEMS,
    POSITIVE_THRESHOLD,
    Analysis,
    AnalysisDetails,
    MetricBundle,
    Module,
    Sentiment,
)


# OVERALL: a domain scoring at or above this is called out as going well,
# below the second as needing attention.
OVERALL_STRONG_SCORE = 80
OVERALL_WEAK_SCORE = 40

_COMPARATORS = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
}


class FlagRule(BaseModel):
    """
    One "good" or "concerning" threshold for a domain metric.

    The rule applies only when `requires` (if set) is a positive metric,
    so ratios over nothing never fire.
    """
    model_config = ConfigDict(frozen=True)

    flag: str
    kind: Literal["highlight", "warning"]
    metric: str
    op: Literal[">=", ">", "<=", "<"]
    threshold: float
    requires: Optional[str] = None
    message: str
    label: str

    def fires(self, bundle: MetricBundle) -> bool:
        if self.requires and bundle.get(self.requires) <= 0:
            return False
        return _COMPARATORS[self.op](bundle.get(self.metric), self.threshold)

    def render(self, bundle: MetricBundle) -> str:
        return self.message.format(
            magnitude=abs(bundle.get(self.metric)),
            **bundle.metrics,
        )


FLAG_RULES: dict[Module, list[FlagRule]] = {
    Module.FINANCE: [
        FlagRule(
            flag="on_budget", kind="highlight", metric="on_budget_ratio",
            op=">=", threshold=0.75, requires="budgeted_count",
            message="{on_budget_ratio:.0%} of budgeted spending stayed on budget",
            label="Budget",
        ),
        FlagRule(
            flag="strong_savings", kind="highlight", metric="savings_rate",
            op=">=", threshold=0.2, requires="income_total",
            message="You kept {savings_rate:.0%} of this month's income",
            label="Savings rate",
        ),
        FlagRule(
            flag="over_budget", kind="warning", metric="over_budget_ratio",
            op=">", threshold=0.25, requires="budgeted_count",
            message="{over_budget_ratio:.0%} of budgeted spending went over budget",
            label="Budget",
        ),
        FlagRule(
            flag="deficit", kind="warning", metric="balance",
            op="<", threshold=0.0,
            message="Spending exceeds income by {magnitude:.2f}",
            label="Spending",
        ),
    ],
    Module.PRODUCTIVITY: [
        FlagRule(
            flag="high_completion", kind="highlight", metric="completion_rate",
            op=">=", threshold=0.8, requires="record_count",
            message="Completed {completion_rate:.0%} of your tasks",
            label="Completion",
        ),
        FlagRule(
            flag="overdue", kind="warning", metric="overdue_count",
            op=">=", threshold=1,
            message="{overdue_count:.0f} task(s) are overdue",
            label="Overdue tasks",
        ),
        FlagRule(
            flag="high_priority_backlog", kind="warning", metric="open_high_priority_count",
            op=">=", threshold=3,
            message="{open_high_priority_count:.0f} high-priority tasks are still open",
            label="High-priority tasks",
        ),
        FlagRule(
            flag="low_completion", kind="warning", metric="completion_rate",
            op="<", threshold=0.4, requires="record_count",
            message="Only {completion_rate:.0%} of tasks were completed",
            label="Completion",
        ),
    ],
    Module.HABIT: [
        FlagRule(
            flag="long_streak", kind="highlight", metric="current_streak",
            op=">=", threshold=7,
            message="{current_streak:.0f}-day check-in streak",
            label="Streak",
        ),
        FlagRule(
            flag="consistent", kind="highlight", metric="completion_rate",
            op=">=", threshold=0.8, requires="habit_count",
            message="Checked in {completion_rate:.0%} of the time",
            label="Consistency",
        ),
        FlagRule(
            flag="inconsistent", kind="warning", metric="completion_rate",
            op="<", threshold=0.5, requires="habit_count",
            message="Habits were checked in only {completion_rate:.0%} of the time",
            label="Consistency",
        ),
    ],
    Module.DIARY: [
        FlagRule(
            flag="regular_writing", kind="highlight", metric="days_written_ratio",
            op=">=", threshold=0.7,
            message="Wrote on {days_written_ratio:.0%} of days in this period",
            label="Writing",
        ),
        FlagRule(
            flag="good_mood", kind="highlight", metric="average_mood",
            op=">=", threshold=4.0, requires="rated_count",
            message="Average mood {average_mood:.1f}/5",
            label="Mood",
        ),
        FlagRule(
            flag="low_mood", kind="warning", metric="average_mood",
            op="<", threshold=2.5, requires="rated_count",
            message="Average mood is down at {average_mood:.1f}/5",
            label="Mood",
        ),
        FlagRule(
            flag="sparse_writing", kind="warning", metric="days_written_ratio",
            op="<", threshold=0.3,
            message="Only {days_written:.0f} diary day(s) in this period",
            label="Writing",
        ),
    ],
    Module.SAVINGS: [
        FlagRule(
            flag="near_target", kind="highlight", metric="average_progress",
            op=">=", threshold=0.8, requires="plan_count",
            message="Plans are {average_progress:.0%} of the way to target on average",
            label="Plan progress",
        ),
        FlagRule(
            flag="steady_deposits", kind="highlight", metric="deposit_ratio",
            op=">=", threshold=0.9, requires="deposit_total",
            message="Deposited {deposit_total:.2f} with little taken back out",
            label="Deposits",
        ),
        FlagRule(
            flag="net_withdrawal", kind="warning", metric="net_saved",
            op="<", threshold=0.0,
            message="Withdrew {magnitude:.2f} more than you deposited",
            label="Withdrawals",
        ),
        FlagRule(
            flag="slow_progress", kind="warning", metric="average_progress",
            op="<", threshold=0.25, requires="plan_count",
            message="Plans are only {average_progress:.0%} of the way to target",
            label="Plan progress",
        ),
    ],
}


TITLES: dict[tuple[Module, Sentiment], str] = {
    (Module.FINANCE, Sentiment.POSITIVE): "Finances on track",
    (Module.FINANCE, Sentiment.NEUTRAL): "Finances holding steady",
    (Module.FINANCE, Sentiment.NEGATIVE): "Finances need attention",
    (Module.PRODUCTIVITY, Sentiment.POSITIVE): "Getting things done",
    (Module.PRODUCTIVITY, Sentiment.NEUTRAL): "Tasks moving along",
    (Module.PRODUCTIVITY, Sentiment.NEGATIVE): "Tasks piling up",
    (Module.HABIT, Sentiment.POSITIVE): "Habits going strong",
    (Module.HABIT, Sentiment.NEUTRAL): "Habits partly kept",
    (Module.HABIT, Sentiment.NEGATIVE): "Habits slipping",
    (Module.DIARY, Sentiment.POSITIVE): "Writing and feeling well",
    (Module.DIARY, Sentiment.NEUTRAL): "Diary ticking over",
    (Module.DIARY, Sentiment.NEGATIVE): "A rough patch",
    (Module.SAVINGS, Sentiment.POSITIVE): "Savings growing",
    (Module.SAVINGS, Sentiment.NEUTRAL): "Savings inching forward",
    (Module.SAVINGS, Sentiment.NEGATIVE): "Savings under pressure",
    (Module.OVERALL, Sentiment.POSITIVE): "Life in good balance",
    (Module.OVERALL, Sentiment.NEUTRAL): "Mixed progress",
    (Module.OVERALL, Sentiment.NEGATIVE): "Several areas need care",
}

SUMMARIES: dict[Module, str] = {
    Module.FINANCE: (
        "Month to date: income {income_total:.2f}, spending {expense_total:.2f}, "
        "balance {balance:.2f}."
    ),
    Module.PRODUCTIVITY: (
        "{completed_count:.0f} of {record_count:.0f} tasks done, "
        "{overdue_count:.0f} overdue."
    ),
    Module.HABIT: (
        "{completed_count:.0f} check-ins across {habit_count:.0f} habit(s), "
        "best current streak {current_streak:.0f} day(s)."
    ),
    Module.DIARY: (
        "{days_written:.0f} day(s) written, {total_words:.0f} words in total."
    ),
    Module.SAVINGS: (
        "Deposited {deposit_total:.2f}, withdrew {withdrawal_total:.2f} "
        "across {plan_count:.0f} plan(s)."
    ),
}

SUGGESTIONS: dict[tuple[Module, Optional[Sentiment], Optional[str]], str] = {
    # Finance
    (Module.FINANCE, None, "over_budget"): "Review the categories that went over budget and trim one of them next week.",
    (Module.FINANCE, None, "deficit"): "Pause non-essential purchases until income covers spending again.",
    (Module.FINANCE, Sentiment.POSITIVE, None): "Consider moving part of this month's surplus into a savings plan.",
    (Module.FINANCE, Sentiment.NEUTRAL, None): "Set a budget for your largest spending category.",
    (Module.FINANCE, Sentiment.NEGATIVE, None): "Record every expense for a week to see where the money goes.",
    # Productivity
    (Module.PRODUCTIVITY, None, "overdue"): "Reschedule or drop overdue tasks so the list reflects what is real.",
    (Module.PRODUCTIVITY, None, "high_priority_backlog"): "Pick one high-priority task and finish it before starting anything new.",
    (Module.PRODUCTIVITY, None, "low_completion"): "Break large tasks into steps you can finish in one sitting.",
    (Module.PRODUCTIVITY, Sentiment.POSITIVE, None): "Keep planning tomorrow's top three tasks each evening.",
    (Module.PRODUCTIVITY, Sentiment.NEUTRAL, None): "Give each task a due date so nothing drifts.",
    (Module.PRODUCTIVITY, Sentiment.NEGATIVE, None): "Limit today's list to three tasks.",
    # Habit
    (Module.HABIT, None, "inconsistent"): "Tie each habit to something you already do every day.",
    (Module.HABIT, Sentiment.POSITIVE, None): "Consider adding one small new habit on top of this routine.",
    (Module.HABIT, Sentiment.NEUTRAL, None): "Check in at the same time every day to build rhythm.",
    (Module.HABIT, Sentiment.NEGATIVE, None): "Shrink your habits until they take two minutes, then build back up.",
    # Diary
    (Module.DIARY, None, "low_mood"): "Note one thing that went well each day, however small.",
    (Module.DIARY, None, "sparse_writing"): "Try a one-line entry before bed.",
    (Module.DIARY, Sentiment.POSITIVE, None): "Look back over last month's entries to see how far you have come.",
    (Module.DIARY, Sentiment.NEUTRAL, None): "Rate your mood with each entry to spot patterns.",
    (Module.DIARY, Sentiment.NEGATIVE, None): "Talk to someone you trust about how the week has felt.",
    # Savings
    (Module.SAVINGS, None, "net_withdrawal"): "Rebuild the plan with a small automatic deposit each week.",
    (Module.SAVINGS, None, "slow_progress"): "Lower the target or extend the deadline so the plan stays realistic.",
    (Module.SAVINGS, Sentiment.POSITIVE, None): "Raise your regular deposit slightly while the habit is strong.",
    (Module.SAVINGS, Sentiment.NEUTRAL, None): "Schedule deposits right after payday.",
    (Module.SAVINGS, Sentiment.NEGATIVE, None): "Start with any deposit at all this week to restart momentum.",
    # Overall
    (Module.OVERALL, Sentiment.POSITIVE, None): "Keep the routines that are working; they are the base for everything else.",
    (Module.OVERALL, Sentiment.NEUTRAL, None): "Pick the weakest area and give it ten minutes a day this week.",
    (Module.OVERALL, Sentiment.NEGATIVE, None): "Focus on one area at a time rather than fixing everything at once.",
}

MOTIVATION: dict[Module, str] = {
    Module.FINANCE: "Every budget starts with one tracked expense. You have already started.",
    Module.PRODUCTIVITY: "Finishing one task today beats planning ten.",
    Module.HABIT: "Missing a day is normal. Missing two is a choice you can still make differently.",
    Module.DIARY: "Hard weeks pass. Writing them down helps them pass sooner.",
    Module.SAVINGS: "Small deposits add up faster than you expect.",
    Module.OVERALL: "Progress is not linear. One good day is enough to turn things around.",
}

ENCOURAGEMENT: dict[Module, str] = {
    Module.FINANCE: "Great discipline with your money. Keep it up!",
    Module.PRODUCTIVITY: "You are on a roll. Keep the momentum going!",
    Module.HABIT: "Your consistency is paying off!",
    Module.DIARY: "Your reflections are building a great record of your life.",
    Module.SAVINGS: "Your future self will thank you!",
    Module.OVERALL: "You are thriving across the board!",
}

INSUFFICIENT_DATA_SUGGESTIONS: dict[Module, str] = {
    Module.FINANCE: "Record a few transactions to get your first finance analysis.",
    Module.PRODUCTIVITY: "Add some tasks to get your first productivity analysis.",
    Module.HABIT: "Check in on a habit to get your first habit analysis.",
    Module.DIARY: "Write a diary entry to get your first diary analysis.",
    Module.SAVINGS: "Make a deposit into a savings plan to get your first savings analysis.",
    Module.OVERALL: "Start tracking any area to get your first overall analysis.",
}


def _first_unique(items: list[str], limit: int = MAX_DETAIL_ITEMS) -> list[str]:
    seen = []
    for item in items:
        if item not in seen:
            seen.append(item)
        if len(seen) == limit:
            break
    return seen


def _domain_scores(bundle: MetricBundle) -> list[tuple[Module, int]]:
    """OVERALL bundle metrics as (domain, score), in display order."""
    return [
        (domain, int(bundle.metrics[domain.value]))
        for domain in Module.domains()
        if domain.value in bundle.metrics
    ]


def _suggestion_for(module: Module, sentiment: Sentiment, flag: Optional[str]) -> Optional[str]:
    return SUGGESTIONS.get((module, sentiment, flag)) or SUGGESTIONS.get((module, None, flag))


def _closing_lines(module: Module, sentiment: Sentiment) -> dict:
    if sentiment is Sentiment.NEGATIVE:
        return {"motivation": MOTIVATION[module]}
    if sentiment is Sentiment.POSITIVE:
        return {"encouragement": ENCOURAGEMENT[module]}
    return {}


def _compose_overall(sentiment: Sentiment, bundle: MetricBundle) -> AnalysisDetails:
    scores = _domain_scores(bundle)
    highlights = [
        f"{domain.label} is going well ({value})"
        for domain, value in scores
        if value >= OVERALL_STRONG_SCORE
    ]
    warnings = [
        f"{domain.label} needs attention ({value})"
        for domain, value in scores
        if value < OVERALL_WEAK_SCORE
    ]

    weakest = min(scores, key=lambda item: item[1])
    top_priority = weakest[0].label if weakest[1] < POSITIVE_THRESHOLD else None

    suggestions = []
    if top_priority:
        suggestions.append(f"{top_priority} is your lowest-scoring area; start there.")
    suggestions.append(SUGGESTIONS[(Module.OVERALL, sentiment, None)])

    return AnalysisDetails(
        suggestions=_first_unique(suggestions),
        highlights=_first_unique(highlights),
        warnings=_first_unique(warnings),
        top_priority=top_priority,
        **_closing_lines(Module.OVERALL, sentiment),
    )


def compose(
    module: Module,
    score: Optional[int],
    sentiment: Sentiment,
    bundle: MetricBundle,
) -> AnalysisDetails:
    """
    Build the details payload.

    A None score is the insufficient-data branch: a single suggestion
    on how to get started, nothing else.
    """
    if score is None or bundle.is_empty:
        return AnalysisDetails(suggestions=[INSUFFICIENT_DATA_SUGGESTIONS[module]])

    if module is Module.OVERALL:
        return _compose_overall(sentiment, bundle)

    fired = [rule for rule in FLAG_RULES[module] if rule.fires(bundle)]
    highlights = [rule.render(bundle) for rule in fired if rule.kind == "highlight"]
    warning_rules = [rule for rule in fired if rule.kind == "warning"]
    warnings = [rule.render(bundle) for rule in warning_rules]

    suggestions = [
        suggestion
        for suggestion in (_suggestion_for(module, sentiment, rule.flag) for rule in warning_rules)
        if suggestion
    ]
    suggestions.append(SUGGESTIONS[(module, sentiment, None)])

    return AnalysisDetails(
        suggestions=_first_unique(suggestions),
        highlights=_first_unique(highlights),
        warnings=_first_unique(warnings),
        top_priority=warning_rules[0].label if warning_rules else None,
        **_closing_lines(module, sentiment),
    )


def headline(
    module: Module,
    score: Optional[int],
    sentiment: Sentiment,
    bundle: MetricBundle,
) -> tuple[str, str]:
    """Title and one-paragraph summary."""
    if score is None or bundle.is_empty:
        if module is Module.OVERALL:
            return (
                "Not enough data yet",
                "No activity was recorded in any area for this period, "
                "so there is nothing to score yet.",
            )
        return (
            f"Not enough {module.label.lower()} data yet",
            f"No {module.label.lower()} activity was recorded for this period, "
            "so there is nothing to score yet.",
        )

    title = TITLES[(module, sentiment)]
    if module is Module.OVERALL:
        areas = ", ".join(f"{domain.label} {value}" for domain, value in _domain_scores(bundle))
        summary = f"Across your tracked areas: {areas}."
    else:
        summary = SUMMARIES[module].format(**bundle.metrics)
    return title, f"Score {score}/100. {summary}"


def build_analysis(
    bundle: MetricBundle,
    score: Optional[int],
    sentiment: Sentiment,
    last_updated: datetime,
) -> Analysis:
    """Assemble the full Analysis artifact for a scored bundle."""
    title, content = headline(bundle.module, score, sentiment, bundle)
    return Analysis(
        module=bundle.module,
        score=score,
        sentiment=sentiment,
        title=title,
        content=content,
        details=compose(bundle.module, score, sentiment, bundle),
        period_start=bundle.window_start,
        period_end=bundle.window_end,
        last_updated=last_updated,
    )
