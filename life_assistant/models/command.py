"""
Command Models

Typed values for the command pipeline:

    (intent label, slot map) -> ParseOutcome -> Command -> ExecutionResult

CRITICAL: The loose string slot map from the LLM never travels past the
parser. Everything downstream works with these typed variants only.
Each variant is a tagged union member (``kind`` / ``status``) so it
round-trips through JSON unambiguously.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from life_assistant.models.insight import Module
from life_assistant.models.records import TodoPriority, TransactionType


# =============================================================================
# ENUMS
# =============================================================================

class IntentLabel(str, Enum):
    """Coarse intent labels produced by the LLM classification call."""
    RECORD_EXPENSE = "RECORD_EXPENSE"
    RECORD_INCOME = "RECORD_INCOME"
    ADD_TODO = "ADD_TODO"
    CHECK_HABIT = "CHECK_HABIT"
    QUERY_SUMMARY = "QUERY_SUMMARY"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "IntentLabel":
        """Lenient lookup; anything unrecognised is UNKNOWN."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN


class Slot(str, Enum):
    """Named command parameters."""
    AMOUNT = "amount"
    CATEGORY = "category"
    HABIT = "habit"
    TITLE = "title"
    METRIC = "metric"
    PERIOD = "period"
    DATE = "date"
    VALUE = "value"
    PRIORITY = "priority"
    NOTE = "note"


# When several slots need clarifying, the first one in this order is asked.
SLOT_PRIORITY: tuple[Slot, ...] = (
    Slot.AMOUNT,
    Slot.CATEGORY,
    Slot.HABIT,
    Slot.TITLE,
    Slot.METRIC,
    Slot.PERIOD,
    Slot.DATE,
    Slot.VALUE,
    Slot.PRIORITY,
    Slot.NOTE,
)


class SummaryMetric(str, Enum):
    """What a QUERY_SUMMARY command reports."""
    EXPENSE = "expense"
    INCOME = "income"
    BALANCE = "balance"
    HABIT_STREAK = "habit_streak"
    SAVINGS_PROGRESS = "savings_progress"
    TODO_PROGRESS = "todo_progress"

    @property
    def module(self) -> Module:
        return {
            SummaryMetric.EXPENSE: Module.FINANCE,
            SummaryMetric.INCOME: Module.FINANCE,
            SummaryMetric.BALANCE: Module.FINANCE,
            SummaryMetric.HABIT_STREAK: Module.HABIT,
            SummaryMetric.SAVINGS_PROGRESS: Module.SAVINGS,
            SummaryMetric.TODO_PROGRESS: Module.PRODUCTIVITY,
        }[self]


class ErrorKind(str, Enum):
    """Error taxonomy as reported to callers."""
    VALIDATION = "validation"
    AMBIGUITY = "ambiguity"
    UNSUPPORTED_INTENT = "unsupported_intent"
    EXECUTION = "execution"
    DATA_UNAVAILABLE = "data_unavailable"


# =============================================================================
# COMMANDS
# =============================================================================

class _CommandBase(BaseModel, ABC):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @property
    @abstractmethod
    def module(self) -> Module:
        """The module whose data this command reads or changes."""
        pass

    @property
    def is_mutation(self) -> bool:
        return True

    @property
    def requires_confirmation(self) -> bool:
        """Mutations are previewed before running; read-only queries are not."""
        return self.is_mutation

    @abstractmethod
    def describe(self) -> str:
        """One-line preview shown before the command runs."""
        pass


class RecordTransaction(_CommandBase):
    """Record an income or expense entry."""

    kind: Literal["record_transaction"] = "record_transaction"
    transaction_type: TransactionType
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    note: str = Field(default="", max_length=500)
    occurred_on: date

    @property
    def module(self) -> Module:
        return Module.FINANCE

    def describe(self) -> str:
        label = self.note or self.category_name or "uncategorized"
        return (
            f"Record {self.transaction_type.value}: {label}, "
            f"amount {self.amount:,.2f} on {self.occurred_on.isoformat()}"
        )


class AddTodo(_CommandBase):
    """Add a task."""

    kind: Literal["add_todo"] = "add_todo"
    title: str = Field(..., min_length=1, max_length=200)
    note: str = Field(default="", max_length=1000)
    due_on: Optional[date] = None
    priority: TodoPriority = TodoPriority.NONE

    @property
    def module(self) -> Module:
        return Module.PRODUCTIVITY

    def describe(self) -> str:
        text = f"Add task: {self.title}"
        if self.due_on:
            text += f", due {self.due_on.isoformat()}"
        return text


class CheckHabit(_CommandBase):
    """Check in a habit for a day."""

    kind: Literal["check_habit"] = "check_habit"
    habit_id: str
    habit_name: str = Field(..., min_length=1)
    checked_on: date
    value: Optional[Decimal] = None

    @property
    def module(self) -> Module:
        return Module.HABIT

    def describe(self) -> str:
        text = f"Check in habit: {self.habit_name}"
        if self.value is not None:
            text += f" ({self.value})"
        return text


class QuerySummary(_CommandBase):
    """Report an aggregate over a period. Reads only."""

    kind: Literal["query_summary"] = "query_summary"
    metric: SummaryMetric
    period_label: str
    period_start: date
    period_end: date = Field(..., description="Exclusive")
    category_id: Optional[str] = None
    category_name: Optional[str] = None

    @property
    def module(self) -> Module:
        return self.metric.module

    @property
    def is_mutation(self) -> bool:
        return False

    def describe(self) -> str:
        text = f"Show {self.metric.value.replace('_', ' ')} for {self.period_label}"
        if self.category_name:
            text += f" ({self.category_name})"
        return text


Command = Annotated[
    Union[RecordTransaction, AddTodo, CheckHabit, QuerySummary],
    Field(discriminator="kind"),
]


# =============================================================================
# PARSE OUTCOMES
# =============================================================================

class ClarificationSession(BaseModel):
    """
    Everything needed to resume parsing after the user answers.

    Holds the original classification, not a half-built command:
    the answer is merged into the slot map and parsed again.
    Abandoning a session needs no cleanup.
    """
    model_config = ConfigDict(frozen=True)

    intent: IntentLabel
    slots: dict[str, str] = Field(default_factory=dict)
    pending_slot: Slot
    candidates: list[str] = Field(default_factory=list)
    utterance: Optional[str] = None


class Ready(BaseModel):
    """Every required slot resolved; the command can run."""
    model_config = ConfigDict(frozen=True)

    status: Literal["ready"] = "ready"
    command: Command
    preview: str = ""


class NeedsClarification(BaseModel):
    """Exactly one slot needs an answer from the user."""
    model_config = ConfigDict(frozen=True)

    status: Literal["needs_clarification"] = "needs_clarification"
    slot: Slot
    question: str
    error_kind: ErrorKind = ErrorKind.VALIDATION
    session: ClarificationSession


class Rejected(BaseModel):
    """The utterance cannot be turned into a command."""
    model_config = ConfigDict(frozen=True)

    status: Literal["rejected"] = "rejected"
    reason: str
    message: str = ""


ParseOutcome = Annotated[
    Union[Ready, NeedsClarification, Rejected],
    Field(discriminator="status"),
]


# =============================================================================
# EXECUTION RESULTS
# =============================================================================

class Success(BaseModel):
    """The domain call completed."""
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    summary: str
    module: Module
    data: dict[str, Any] = Field(default_factory=dict)


class Failed(BaseModel):
    """The domain call failed; nothing was changed."""
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    error_kind: ErrorKind
    message: str


ExecutionResult = Annotated[
    Union[Success, Failed],
    Field(discriminator="status"),
]
