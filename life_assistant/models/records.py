"""
Domain Records

The shape in which the persistence layer hands records to this core.
The persistence layer owns the storage schema; these models are the
contract at the boundary, validated on the way in.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class TodoPriority(str, Enum):
    """Task priority."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class TransactionRecord(BaseModel):
    """A single income or expense entry."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    transaction_type: TransactionType
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category_id: Optional[str] = None
    occurred_on: date
    note: str = Field(default="", max_length=500)
    within_budget: Optional[bool] = Field(
        default=None,
        description="Whether this entry kept its category on budget; None when unbudgeted"
    )


class TodoRecord(BaseModel):
    """A task."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=200)
    note: str = Field(default="", max_length=1000)
    priority: TodoPriority = TodoPriority.NONE
    created_on: date
    due_on: Optional[date] = None
    completed: bool = False
    completed_on: Optional[date] = None

    @model_validator(mode='after')
    def validate_completion(self) -> 'TodoRecord':
        if self.completed_on and not self.completed:
            raise ValueError("Completion date set on an open task")
        return self

    def is_overdue(self, as_of: date) -> bool:
        """Open and due strictly before as_of."""
        return not self.completed and self.due_on is not None and self.due_on < as_of


class HabitCheckinRecord(BaseModel):
    """One habit on one day."""

    id: UUID = Field(default_factory=uuid4)
    habit_id: str
    habit_name: str = Field(..., min_length=1, max_length=100)
    checked_on: date
    completed: bool = True
    value: Optional[Decimal] = Field(
        default=None,
        description="Value for numeric habits (glasses of water, pages read...)"
    )


class DiaryRecord(BaseModel):
    """A diary entry."""

    id: UUID = Field(default_factory=uuid4)
    entry_date: date
    mood: Optional[int] = Field(default=None, ge=1, le=5)
    word_count: int = Field(default=0, ge=0)


class SavingsRecord(BaseModel):
    """
    A deposit into or withdrawal from a savings plan.

    amount is signed: deposits are positive, withdrawals negative.
    The plan's target and current balance travel with the record.
    """

    id: UUID = Field(default_factory=uuid4)
    plan_id: str
    plan_name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal
    occurred_on: date
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode='after')
    def validate_amount(self) -> 'SavingsRecord':
        if self.amount == 0:
            raise ValueError("A savings movement cannot be zero")
        return self

    @property
    def is_deposit(self) -> bool:
        return self.amount > 0
