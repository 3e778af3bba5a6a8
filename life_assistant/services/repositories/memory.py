"""
In-Memory Repositories

Dictionary-backed implementations of the collaborator interfaces.
Used by the test suite and for running the core without a database.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from life_assistant.models.audit import AuditEvent
from life_assistant.models.insight import Module
from life_assistant.models.records import (
    DiaryRecord,
    HabitCheckinRecord,
    SavingsRecord,
    TodoRecord,
    TransactionRecord,
)
from life_assistant.services.repositories.interface import (
    AuditStorageInterface,
    CategoryLookup,
    DiaryRepository,
    DomainRepository,
    DuplicateError,
    NotFoundError,
    FinanceRepository,
    HabitRepository,
    SavingsRepository,
    TodoRepository,
)


def _in_window(day: date, start: date, end: date) -> bool:
    return start <= day < end


class InMemoryFinanceRepository(FinanceRepository):
    """Transactions kept in a dict keyed by id."""

    def __init__(self, records: Optional[list[TransactionRecord]] = None):
        self._records: dict[UUID, TransactionRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    async def query_window(self, start: date, end: date) -> list[TransactionRecord]:
        return sorted(
            (r for r in self._records.values() if _in_window(r.occurred_on, start, end)),
            key=lambda r: r.occurred_on,
        )

    async def insert_transaction(self, record: TransactionRecord) -> bool:
        if record.id in self._records:
            raise DuplicateError(f"Transaction {record.id} already exists")
        self._records[record.id] = record
        return True

    @property
    def records(self) -> list[TransactionRecord]:
        return list(self._records.values())


class InMemoryTodoRepository(TodoRepository):
    """Tasks kept in a dict keyed by id."""

    def __init__(self, records: Optional[list[TodoRecord]] = None):
        self._records: dict[UUID, TodoRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    async def query_window(self, start: date, end: date) -> list[TodoRecord]:
        relevant = []
        for record in self._records.values():
            created_in = _in_window(record.created_on, start, end)
            due_in = record.due_on is not None and _in_window(record.due_on, start, end)
            carried_over = (
                not record.completed
                and record.due_on is not None
                and record.due_on < start
            )
            if created_in or due_in or carried_over:
                relevant.append(record)
        return sorted(relevant, key=lambda r: r.created_on)

    async def insert_todo(self, record: TodoRecord) -> bool:
        if record.id in self._records:
            raise DuplicateError(f"Todo {record.id} already exists")
        self._records[record.id] = record
        return True

    @property
    def records(self) -> list[TodoRecord]:
        return list(self._records.values())


class InMemoryHabitRepository(HabitRepository):
    """
    Check-ins kept in a dict keyed by (habit_id, day).

    Checking the same habit twice on one day overwrites the first record.
    """

    def __init__(self, records: Optional[list[HabitCheckinRecord]] = None):
        self._records: dict[tuple[str, date], HabitCheckinRecord] = {}
        for record in records or []:
            self._records[(record.habit_id, record.checked_on)] = record

    async def query_window(self, start: date, end: date) -> list[HabitCheckinRecord]:
        return sorted(
            (r for r in self._records.values() if _in_window(r.checked_on, start, end)),
            key=lambda r: (r.checked_on, r.habit_id),
        )

    async def record_checkin(self, record: HabitCheckinRecord) -> bool:
        self._records[(record.habit_id, record.checked_on)] = record
        return True

    @property
    def records(self) -> list[HabitCheckinRecord]:
        return list(self._records.values())


class InMemoryDiaryRepository(DiaryRepository):
    """Diary entries in a list."""

    def __init__(self, records: Optional[list[DiaryRecord]] = None):
        self._records = list(records or [])

    async def query_window(self, start: date, end: date) -> list[DiaryRecord]:
        return sorted(
            (r for r in self._records if _in_window(r.entry_date, start, end)),
            key=lambda r: r.entry_date,
        )


class InMemorySavingsRepository(SavingsRepository):
    """Savings movements in a list."""

    def __init__(self, records: Optional[list[SavingsRecord]] = None):
        self._records = list(records or [])

    async def query_window(self, start: date, end: date) -> list[SavingsRecord]:
        return sorted(
            (r for r in self._records if _in_window(r.occurred_on, start, end)),
            key=lambda r: r.occurred_on,
        )


class StaticCategoryLookup(CategoryLookup):
    """
    Fixed name tables per module.

    Usage:
        lookup = StaticCategoryLookup({
            Module.FINANCE: {"cat-dining": "Dining", "cat-rent": "Rent"},
            Module.HABIT: {"h-run": "Morning run"},
        })
    """

    def __init__(self, tables: Optional[dict[Module, dict[str, str]]] = None):
        self._tables = {module: dict(table) for module, table in (tables or {}).items()}

    def valid_category_names(self, module: Module) -> list[str]:
        return list(self._tables.get(module, {}).values())

    def category_id(self, module: Module, name: str) -> Optional[str]:
        for identifier, candidate in self._tables.get(module, {}).items():
            if candidate == name:
                return identifier
        return None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)


class RepositoryRegistry:
    """
    The set of domain repositories, addressable by module.

    This is the ``query_window(module, start, end)`` entry point the
    extractors are fed from.
    """

    def __init__(
        self,
        finance: FinanceRepository,
        todo: TodoRepository,
        habit: HabitRepository,
        diary: DiaryRepository,
        savings: SavingsRepository,
    ):
        self.finance = finance
        self.todo = todo
        self.habit = habit
        self.diary = diary
        self.savings = savings

    def for_module(self, module: Module) -> DomainRepository:
        repositories = {
            Module.FINANCE: self.finance,
            Module.PRODUCTIVITY: self.todo,
            Module.HABIT: self.habit,
            Module.DIARY: self.diary,
            Module.SAVINGS: self.savings,
        }
        if module not in repositories:
            raise NotFoundError(f"No repository for module {module.value}")
        return repositories[module]

    async def query_window(self, module: Module, start: date, end: date) -> list:
        return await self.for_module(module).query_window(start, end)

    @classmethod
    def in_memory(cls) -> "RepositoryRegistry":
        """Empty in-memory repositories for every domain."""
        return cls(
            finance=InMemoryFinanceRepository(),
            todo=InMemoryTodoRepository(),
            habit=InMemoryHabitRepository(),
            diary=InMemoryDiaryRepository(),
            savings=InMemorySavingsRepository(),
        )
