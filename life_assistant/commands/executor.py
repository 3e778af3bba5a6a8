"""
Command Executor

DESIGN DECISION: Every command maps to exactly ONE repository call.
- A mutation is that repository's own transaction, so a failed call
  leaves nothing behind and there is nothing to roll back
- A summary query reads one window and aggregates here, in Python

The executor never retries. A raised exception or a False return from
the repository becomes Failed(EXECUTION, "could not complete: <reason>")
and the analysis cache is not touched.

On success of a mutation the touched module's analysis (and OVERALL,
which is built from it) is invalidated before the result is returned.
Nothing is recomputed here.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from life_assistant.audit import AuditLogger
from life_assistant.errors import ExecutionError
from life_assistant.insights.cache import AnalysisCache, Clock, local_now
from life_assistant.insights.extractors import consecutive_days
from life_assistant.models.command import (
    AddTodo,
    CheckHabit,
    ErrorKind,
    ExecutionResult,
    Failed,
    QuerySummary,
    RecordTransaction,
    Success,
    SummaryMetric,
)
from life_assistant.models.insight import Module
from life_assistant.models.records import (
    HabitCheckinRecord,
    SavingsRecord,
    TodoRecord,
    TransactionRecord,
    TransactionType,
)
from life_assistant.services.repositories import RepositoryRegistry


def _money(amount: Decimal) -> str:
    return f"{amount:,.2f}"


class CommandExecutor:
    """
    Runs validated commands against the domain repositories.

    GUARANTEES:
    - Exactly one terminal ExecutionResult per command
    - At most one repository call per command
    - Summaries only report what the repository returned
    """

    def __init__(
        self,
        repositories: RepositoryRegistry,
        cache: AnalysisCache,
        clock: Clock = local_now,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repositories = repositories
        self._cache = cache
        self._clock = clock
        self._audit_logger = audit_logger

    async def execute(
        self,
        command,
        correlation_id: Optional[UUID] = None,
    ) -> ExecutionResult:
        """Execute one command."""
        handlers = {
            RecordTransaction: self._record_transaction,
            AddTodo: self._add_todo,
            CheckHabit: self._check_habit,
            QuerySummary: self._query_summary,
        }
        handler = handlers.get(type(command))
        kind = getattr(command, "kind", type(command).__name__)

        if handler is None:
            result = Failed(
                error_kind=ErrorKind.UNSUPPORTED_INTENT,
                message=f"Sorry, I don't know how to run '{kind}'.",
            )
            if self._audit_logger:
                await self._audit_logger.log_command_failed(
                    kind, result.error_kind.value, result.message, correlation_id
                )
            return result

        try:
            result = await handler(command)
        except Exception as e:
            reason = str(e) or type(e).__name__
            result = Failed(
                error_kind=ErrorKind.EXECUTION,
                message=f"could not complete: {reason}",
            )
            if self._audit_logger:
                await self._audit_logger.log_command_failed(
                    kind, result.error_kind.value, reason, correlation_id
                )
            return result

        if command.is_mutation:
            touched = [command.module, Module.OVERALL]
            for module in touched:
                self._cache.invalidate(module)
            if self._audit_logger:
                for module in touched:
                    await self._audit_logger.log_analysis_invalidated(
                        module.value, f"{kind} executed", correlation_id
                    )

        if self._audit_logger:
            await self._audit_logger.log_command_executed(
                kind, command.module.value, result.summary, correlation_id
            )
        return result

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def _record_transaction(self, command: RecordTransaction) -> Success:
        record = TransactionRecord(
            transaction_type=command.transaction_type,
            amount=command.amount,
            category_id=command.category_id,
            occurred_on=command.occurred_on,
            note=command.note,
        )
        stored = await self._repositories.finance.insert_transaction(record)
        if not stored:
            raise ExecutionError("the transaction was not saved")

        verb = "income" if command.transaction_type == TransactionType.INCOME else "expense"
        where = f" under {command.category_name}" if command.category_name else ""
        return Success(
            summary=(
                f"Recorded {verb} of {_money(command.amount)}{where} "
                f"on {command.occurred_on.isoformat()}."
            ),
            module=Module.FINANCE,
            data={"record_id": str(record.id)},
        )

    async def _add_todo(self, command: AddTodo) -> Success:
        record = TodoRecord(
            title=command.title,
            note=command.note,
            priority=command.priority,
            created_on=self._clock().date(),
            due_on=command.due_on,
        )
        stored = await self._repositories.todo.insert_todo(record)
        if not stored:
            raise ExecutionError("the task was not saved")

        due = f", due {command.due_on.isoformat()}" if command.due_on else ""
        return Success(
            summary=f"Added task \"{command.title}\"{due}.",
            module=Module.PRODUCTIVITY,
            data={"record_id": str(record.id)},
        )

    async def _check_habit(self, command: CheckHabit) -> Success:
        record = HabitCheckinRecord(
            habit_id=command.habit_id,
            habit_name=command.habit_name,
            checked_on=command.checked_on,
            value=command.value,
        )
        stored = await self._repositories.habit.record_checkin(record)
        if not stored:
            raise ExecutionError("the check-in was not saved")

        return Success(
            summary=f"Checked in {command.habit_name} for {command.checked_on.isoformat()}.",
            module=Module.HABIT,
            data={"record_id": str(record.id)},
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def _query_summary(self, command: QuerySummary) -> Success:
        """Route to the aggregation for the requested metric."""
        if command.metric in (SummaryMetric.EXPENSE, SummaryMetric.INCOME, SummaryMetric.BALANCE):
            return await self._summarize_finance(command)
        if command.metric is SummaryMetric.HABIT_STREAK:
            return await self._summarize_habits(command)
        if command.metric is SummaryMetric.SAVINGS_PROGRESS:
            return await self._summarize_savings(command)
        return await self._summarize_todos(command)

    async def _summarize_finance(self, command: QuerySummary) -> Success:
        records = await self._repositories.finance.query_window(
            command.period_start, command.period_end
        )
        if command.category_id:
            records = [r for r in records if r.category_id == command.category_id]

        income = sum(
            (r.amount for r in records if r.transaction_type == TransactionType.INCOME),
            Decimal("0"),
        )
        expenses = [r for r in records if r.transaction_type == TransactionType.EXPENSE]
        expense = sum((r.amount for r in expenses), Decimal("0"))
        where = f" on {command.category_name}" if command.category_name else ""

        if command.metric is SummaryMetric.EXPENSE:
            summary = (
                f"You spent {_money(expense)}{where} {command.period_label} "
                f"({len(expenses)} transaction(s))."
            )
        elif command.metric is SummaryMetric.INCOME:
            count = len(records) - len(expenses)
            summary = (
                f"You received {_money(income)}{where} {command.period_label} "
                f"({count} transaction(s))."
            )
        else:
            summary = (
                f"Your balance {command.period_label} is {_money(income - expense)} "
                f"(income {_money(income)}, spending {_money(expense)})."
            )

        return Success(
            summary=summary,
            module=Module.FINANCE,
            data={
                "income": str(income),
                "expense": str(expense),
                "balance": str(income - expense),
                "transaction_count": len(records),
            },
        )

    async def _summarize_habits(self, command: QuerySummary) -> Success:
        records: list[HabitCheckinRecord] = await self._repositories.habit.query_window(
            command.period_start, command.period_end
        )
        # Streaks end on the period's last day, or today if the period runs on
        last_day = min(self._clock().date(), command.period_end - timedelta(days=1))

        days: dict[str, set[date]] = {}
        names: dict[str, str] = {}
        for record in records:
            names[record.habit_id] = record.habit_name
            days.setdefault(record.habit_id, set())
            if record.completed:
                days[record.habit_id].add(record.checked_on)

        streaks = {
            names[habit_id]: consecutive_days(checked, last_day)
            for habit_id, checked in days.items()
        }
        if not streaks:
            summary = f"No habit check-ins {command.period_label}."
        else:
            best_name = max(sorted(streaks), key=lambda name: streaks[name])
            summary = f"Best current streak: {best_name}, {streaks[best_name]} day(s)."

        return Success(summary=summary, module=Module.HABIT, data={"streaks": streaks})

    async def _summarize_savings(self, command: QuerySummary) -> Success:
        records: list[SavingsRecord] = await self._repositories.savings.query_window(
            command.period_start, command.period_end
        )
        latest: dict[str, SavingsRecord] = {}
        for record in sorted(records, key=lambda r: r.occurred_on):
            latest[record.plan_id] = record

        plans = {
            record.plan_name: {
                "current": str(record.current_amount),
                "target": str(record.target_amount),
                "progress": round(min(1.0, float(record.current_amount / record.target_amount)), 4),
            }
            for record in latest.values()
        }
        if not plans:
            summary = f"No savings activity {command.period_label}."
        else:
            parts = [
                f"{record.plan_name} {_money(record.current_amount)} of "
                f"{_money(record.target_amount)} ({plans[record.plan_name]['progress']:.0%})"
                for record in sorted(latest.values(), key=lambda r: r.plan_name)
            ]
            summary = "Savings plans: " + "; ".join(parts) + "."

        return Success(summary=summary, module=Module.SAVINGS, data={"plans": plans})

    async def _summarize_todos(self, command: QuerySummary) -> Success:
        records: list[TodoRecord] = await self._repositories.todo.query_window(
            command.period_start, command.period_end
        )
        completed = sum(1 for r in records if r.completed)
        if not records:
            summary = f"No tasks {command.period_label}."
        else:
            summary = f"Completed {completed} of {len(records)} task(s) {command.period_label}."

        return Success(
            summary=summary,
            module=Module.PRODUCTIVITY,
            data={"completed": completed, "total": len(records)},
        )
