"""
Shared fixtures.

All tests run against in-memory repositories, a fake clock and a stub
classifier. No network calls.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest

from life_assistant.agents import IntentClassification, IntentClassifier
from life_assistant.models.command import IntentLabel
from life_assistant.models.insight import Analysis, Module, Sentiment
from life_assistant.models.records import TransactionRecord, TransactionType
from life_assistant.services.repositories import (
    DiaryRepository,
    InMemoryDiaryRepository,
    InMemoryFinanceRepository,
    InMemoryHabitRepository,
    InMemorySavingsRepository,
    InMemoryTodoRepository,
    RepositoryRegistry,
    StaticCategoryLookup,
    StorageConnectionError,
)


# A Sunday
TODAY = date(2026, 10, 18)
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class StubClassifier(IntentClassifier):
    """Returns a fixed classification and remembers what it was asked."""

    def __init__(
        self,
        intent: IntentLabel = IntentLabel.UNKNOWN,
        slots: Optional[dict] = None,
        error: Optional[Exception] = None,
    ):
        self.classification = IntentClassification(intent=intent, slots=slots or {})
        self.error = error
        self.calls: list[str] = []

    async def classify(self, utterance: str) -> IntentClassification:
        self.calls.append(utterance)
        if self.error:
            raise self.error
        return self.classification


class CountingFinanceRepository(InMemoryFinanceRepository):
    """Finance repository that counts reads and writes."""

    def __init__(self, records=None):
        super().__init__(records)
        self.query_calls = 0
        self.inserted: list[TransactionRecord] = []

    async def query_window(self, start, end):
        self.query_calls += 1
        return await super().query_window(start, end)

    async def insert_transaction(self, record):
        self.inserted.append(record)
        return await super().insert_transaction(record)


class FailingFinanceRepository(InMemoryFinanceRepository):
    """Finance repository whose writes fail."""

    def __init__(self, records=None, declined: bool = False):
        super().__init__(records)
        self.declined = declined
        self.attempts = 0

    async def insert_transaction(self, record):
        self.attempts += 1
        if self.declined:
            return False
        raise StorageConnectionError("finance store offline")


class BrokenDiaryRepository(DiaryRepository):
    """Diary repository whose reads fail."""

    async def query_window(self, start, end):
        raise StorageConnectionError("diary store offline")


def make_registry(finance=None, todo=None, habit=None, diary=None, savings=None) -> RepositoryRegistry:
    return RepositoryRegistry(
        finance=finance or InMemoryFinanceRepository(),
        todo=todo or InMemoryTodoRepository(),
        habit=habit or InMemoryHabitRepository(),
        diary=diary or InMemoryDiaryRepository(),
        savings=savings or InMemorySavingsRepository(),
    )


def expense(amount: str, day: date = TODAY, within_budget: Optional[bool] = None, category_id: Optional[str] = None):
    return TransactionRecord(
        transaction_type=TransactionType.EXPENSE,
        amount=Decimal(amount),
        occurred_on=day,
        within_budget=within_budget,
        category_id=category_id,
    )


def income(amount: str, day: date = TODAY, category_id: Optional[str] = None):
    return TransactionRecord(
        transaction_type=TransactionType.INCOME,
        amount=Decimal(amount),
        occurred_on=day,
        category_id=category_id,
    )


def make_analysis(
    module: Module = Module.FINANCE,
    score: Optional[int] = 75,
    last_updated: datetime = NOW,
) -> Analysis:
    return Analysis(
        module=module,
        score=score,
        sentiment=Sentiment.from_score(score),
        title="Test analysis",
        content="Test content.",
        period_start=TODAY.replace(day=1),
        period_end=TODAY + timedelta(days=1),
        last_updated=last_updated,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def category_lookup() -> StaticCategoryLookup:
    return StaticCategoryLookup({
        Module.FINANCE: {
            "cat-dining": "Dining",
            "cat-transport": "Transport",
            "cat-shopping": "Shopping",
            "cat-salary": "Salary",
        },
        Module.HABIT: {
            "h-run": "Morning run",
            "h-read": "Reading",
            "h-water": "Drink water",
        },
    })


@pytest.fixture
def registry() -> RepositoryRegistry:
    return make_registry(finance=CountingFinanceRepository())
