"""
Abstract Collaborator Interfaces

DESIGN DECISION: The persistence layer is not part of this core. We define
the narrow interfaces we consume so that:
1. The real app plugs in its own database-backed repositories
2. Tests use in-memory storage
3. Business logic stays decoupled from storage implementation

Each domain repository exposes one windowed read (feeds the extractors)
and, where a command targets it, one mutation entry point (feeds the
executor). A mutation is the repository's own transaction: it either
stores the record and returns True, or stores nothing.
"""

from abc import ABC, abstractmethod
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


class DomainRepository(ABC):
    """Read side shared by every domain repository."""

    module: Module

    @abstractmethod
    async def query_window(self, start: date, end: date) -> list:
        """
        Return the records of this domain that fall in [start, end).

        Must not mutate anything. Returns an empty list when the
        window holds no records.
        """
        pass


class FinanceRepository(DomainRepository):
    """Income and expense entries."""

    module = Module.FINANCE

    @abstractmethod
    async def query_window(self, start: date, end: date) -> list[TransactionRecord]:
        """Transactions whose occurred_on falls in [start, end)."""
        pass

    @abstractmethod
    async def insert_transaction(self, record: TransactionRecord) -> bool:
        """
        Store a transaction.

        Returns:
            True if stored, False if the store declined it

        Raises:
            StorageError: If the write fails
        """
        pass


class TodoRepository(DomainRepository):
    """Tasks."""

    module = Module.PRODUCTIVITY

    @abstractmethod
    async def query_window(self, start: date, end: date) -> list[TodoRecord]:
        """
        Tasks relevant to [start, end).

        A task is relevant when it was created or is due in the window,
        or when it is still open and was already due before the window
        started (carried-over overdue work).
        """
        pass

    @abstractmethod
    async def insert_todo(self, record: TodoRecord) -> bool:
        """Store a task. Same contract as FinanceRepository.insert_transaction."""
        pass


class HabitRepository(DomainRepository):
    """Habit check-ins."""

    module = Module.HABIT

    @abstractmethod
    async def query_window(self, start: date, end: date) -> list[HabitCheckinRecord]:
        """Check-in records whose checked_on falls in [start, end)."""
        pass

    @abstractmethod
    async def record_checkin(self, record: HabitCheckinRecord) -> bool:
        """Store a check-in. Same contract as FinanceRepository.insert_transaction."""
        pass


class DiaryRepository(DomainRepository):
    """Diary entries. Read-only from this core."""

    module = Module.DIARY

    @abstractmethod
    async def query_window(self, start: date, end: date) -> list[DiaryRecord]:
        """Entries whose entry_date falls in [start, end)."""
        pass


class SavingsRepository(DomainRepository):
    """Savings plan movements. Read-only from this core."""

    module = Module.SAVINGS

    @abstractmethod
    async def query_window(self, start: date, end: date) -> list[SavingsRecord]:
        """Deposits and withdrawals whose occurred_on falls in [start, end)."""
        pass


class CategoryLookup(ABC):
    """
    Valid names the fuzzy slot matcher may resolve to.

    For FINANCE these are transaction categories; for HABIT they are the
    names of the user's active habits. Synchronous: the parser never
    suspends.
    """

    @abstractmethod
    def valid_category_names(self, module: Module) -> list[str]:
        """All valid names for a module, in display order."""
        pass

    @abstractmethod
    def category_id(self, module: Module, name: str) -> Optional[str]:
        """Identifier for an exact valid name, None if unknown."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Returns True if logged successfully."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events for one correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
