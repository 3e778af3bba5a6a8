"""
Command Parser

(intent label, loose slot map) -> ParseOutcome

CRITICAL: The slot map is converted to a typed Command here and nowhere
else. Nothing downstream ever sees the raw strings.

Algorithm:
1. UNKNOWN (or unmapped) intent -> Rejected("unsupported")
2. Walk the intent's slots in SLOT_PRIORITY order; a missing required
   slot, or any provided slot that will not coerce, stops the walk
3. That one slot becomes NeedsClarification
4. Missing optional slots take their defaults and never clarify
5. Otherwise -> Ready(Command)

The parser is synchronous and side-effect free.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional

from life_assistant.commands.categories import match_name
from life_assistant.commands.slots import (
    coerce_amount,
    coerce_date,
    coerce_metric,
    coerce_number,
    coerce_priority,
    resolve_period,
)
from life_assistant.config import CommandSettings
from life_assistant.errors import AmbiguityError, SlotValidationError, UnsupportedIntentError
from life_assistant.insights.cache import Clock, local_now
from life_assistant.models.command import (
    SLOT_PRIORITY,
    AddTodo,
    CheckHabit,
    ClarificationSession,
    ErrorKind,
    IntentLabel,
    NeedsClarification,
    ParseOutcome,
    QuerySummary,
    Ready,
    RecordTransaction,
    Rejected,
    Slot,
)
from life_assistant.models.insight import Module
from life_assistant.models.records import TodoPriority, TransactionType
from life_assistant.services.repositories import CategoryLookup


# Which slots each intent reads, and which of them are required.
INTENT_SLOTS: dict[IntentLabel, dict[Slot, bool]] = {
    IntentLabel.RECORD_EXPENSE: {
        Slot.AMOUNT: True,
        Slot.CATEGORY: False,
        Slot.DATE: False,
        Slot.NOTE: False,
    },
    IntentLabel.RECORD_INCOME: {
        Slot.AMOUNT: True,
        Slot.CATEGORY: False,
        Slot.DATE: False,
        Slot.NOTE: False,
    },
    IntentLabel.ADD_TODO: {
        Slot.TITLE: True,
        Slot.DATE: False,
        Slot.PRIORITY: False,
        Slot.NOTE: False,
    },
    IntentLabel.CHECK_HABIT: {
        Slot.HABIT: True,
        Slot.DATE: False,
        Slot.VALUE: False,
    },
    IntentLabel.QUERY_SUMMARY: {
        Slot.METRIC: True,
        Slot.CATEGORY: False,
        Slot.PERIOD: False,
    },
}


def normalize_slots(slots: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """
    Lower-case the keys, stringify and strip the values, drop blanks.

    Unknown keys are kept so a clarification round trip loses nothing.
    """
    normalized: dict[str, str] = {}
    for key, value in (slots or {}).items():
        if value is None:
            continue
        text = str(value).strip()
        if text:
            normalized[str(key).strip().lower()] = text
    return normalized


class CommandParser:
    """
    Builds typed commands from classifier output.

    Usage:
        parser = CommandParser(category_lookup)
        outcome = parser.parse(IntentLabel.RECORD_EXPENSE, {"amount": "45"})
    """

    def __init__(
        self,
        category_lookup: CategoryLookup,
        settings: Optional[CommandSettings] = None,
        clock: Clock = local_now,
    ):
        self._lookup = category_lookup
        self._settings = settings or CommandSettings()
        self._clock = clock

    def parse(
        self,
        intent: IntentLabel,
        slots: Optional[Mapping[str, Any]] = None,
        utterance: Optional[str] = None,
    ) -> ParseOutcome:
        """Parse one classification. Never raises for bad slot values."""
        intent = IntentLabel.parse(intent)
        values = normalize_slots(slots)

        try:
            command = self._build(intent, values)
        except UnsupportedIntentError:
            return Rejected(reason="unsupported")
        except SlotValidationError as e:
            is_ambiguous = isinstance(e, AmbiguityError)
            candidates = e.candidates if is_ambiguous else []
            return NeedsClarification(
                slot=Slot(e.slot),
                question=e.message,
                error_kind=ErrorKind.AMBIGUITY if is_ambiguous else ErrorKind.VALIDATION,
                session=ClarificationSession(
                    intent=intent,
                    slots=values,
                    pending_slot=Slot(e.slot),
                    candidates=candidates,
                    utterance=utterance,
                ),
            )

        return Ready(command=command, preview=command.describe())

    # =========================================================================
    # BUILDERS
    # =========================================================================

    def _build(self, intent: IntentLabel, values: dict[str, str]):
        builders: dict[IntentLabel, Callable[[IntentLabel, dict], Any]] = {
            IntentLabel.RECORD_EXPENSE: self._record_transaction,
            IntentLabel.RECORD_INCOME: self._record_transaction,
            IntentLabel.ADD_TODO: self._add_todo,
            IntentLabel.CHECK_HABIT: self._check_habit,
            IntentLabel.QUERY_SUMMARY: self._query_summary,
        }
        if intent not in builders:
            raise UnsupportedIntentError(intent.value)

        coerced = self._coerce_all(intent, values)
        return builders[intent](intent, coerced)

    def _coerce_all(self, intent: IntentLabel, values: dict[str, str]) -> dict[Slot, Any]:
        """
        Coerce every slot the intent reads, in priority order.

        The first failure raises, so the reported slot is always the
        highest-priority one that needs the user.
        """
        required_by_slot = INTENT_SLOTS[intent]
        coerced: dict[Slot, Any] = {}
        for slot in SLOT_PRIORITY:
            if slot not in required_by_slot:
                continue
            raw = values.get(slot.value)
            if raw is None:
                if required_by_slot[slot]:
                    raise SlotValidationError(slot.value, f"{slot.value} is missing")
                continue
            coerced[slot] = self._coerce(intent, slot, raw, values)
        return coerced

    def _coerce(self, intent: IntentLabel, slot: Slot, raw: str, values: dict[str, str]) -> Any:
        today = self._today()
        if slot is Slot.AMOUNT:
            return coerce_amount(raw, Decimal(str(self._settings.max_amount)))
        if slot is Slot.CATEGORY:
            if intent is IntentLabel.QUERY_SUMMARY and not self._filters_by_category(values):
                return None
            return self._match(Module.FINANCE, slot, raw)
        if slot is Slot.HABIT:
            return self._match(Module.HABIT, slot, raw)
        if slot is Slot.DATE:
            return coerce_date(raw, today, prefer_future=intent is IntentLabel.ADD_TODO)
        if slot is Slot.PERIOD:
            return resolve_period(raw, today)
        if slot is Slot.METRIC:
            return coerce_metric(raw)
        if slot is Slot.PRIORITY:
            return coerce_priority(raw)
        if slot is Slot.VALUE:
            return coerce_number(raw)
        # TITLE and NOTE are free text
        return raw

    @staticmethod
    def _filters_by_category(values: dict[str, str]) -> bool:
        """
        A summary only filters by category for money metrics.

        Category is coerced before metric, so the metric is peeked at
        here; an unreadable metric is clarified later in the walk.
        """
        raw_metric = values.get(Slot.METRIC.value)
        if raw_metric is None:
            return True
        try:
            return coerce_metric(raw_metric).module is Module.FINANCE
        except SlotValidationError:
            return True

    def _match(self, module: Module, slot: Slot, raw: str) -> tuple[str, str]:
        """Fuzzy-match a name; returns (id, name)."""
        name = match_name(slot, raw, self._lookup.valid_category_names(module))
        identifier = self._lookup.category_id(module, name)
        if identifier is None:
            raise SlotValidationError(slot.value, f"'{name}' is no longer available")
        return identifier, name

    def _today(self) -> date:
        return self._clock().date()

    def _record_transaction(self, intent: IntentLabel, coerced: dict[Slot, Any]) -> RecordTransaction:
        category = coerced.get(Slot.CATEGORY)
        return RecordTransaction(
            transaction_type=(
                TransactionType.INCOME
                if intent is IntentLabel.RECORD_INCOME
                else TransactionType.EXPENSE
            ),
            amount=coerced[Slot.AMOUNT],
            category_id=category[0] if category else None,
            category_name=category[1] if category else None,
            note=coerced.get(Slot.NOTE, ""),
            occurred_on=coerced.get(Slot.DATE, self._today()),
        )

    def _add_todo(self, intent: IntentLabel, coerced: dict[Slot, Any]) -> AddTodo:
        return AddTodo(
            title=coerced[Slot.TITLE],
            note=coerced.get(Slot.NOTE, ""),
            due_on=coerced.get(Slot.DATE),
            priority=coerced.get(Slot.PRIORITY, TodoPriority.NONE),
        )

    def _check_habit(self, intent: IntentLabel, coerced: dict[Slot, Any]) -> CheckHabit:
        habit_id, habit_name = coerced[Slot.HABIT]
        return CheckHabit(
            habit_id=habit_id,
            habit_name=habit_name,
            checked_on=coerced.get(Slot.DATE, self._today()),
            value=coerced.get(Slot.VALUE),
        )

    def _query_summary(self, intent: IntentLabel, coerced: dict[Slot, Any]) -> QuerySummary:
        period = coerced.get(Slot.PERIOD)
        if period is None:
            period = resolve_period(self._settings.default_query_period, self._today())
        start, end, label = period
        category = coerced.get(Slot.CATEGORY)
        return QuerySummary(
            metric=coerced[Slot.METRIC],
            period_label=label,
            period_start=start,
            period_end=end,
            category_id=category[0] if category else None,
            category_name=category[1] if category else None,
        )
