"""
Repository Services Package

Abstract collaborator interfaces plus in-memory implementations.
"""

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
    StorageConnectionError,
    StorageError,
    TodoRepository,
)
from life_assistant.services.repositories.memory import (
    InMemoryAuditStorage,
    InMemoryDiaryRepository,
    InMemoryFinanceRepository,
    InMemoryHabitRepository,
    InMemorySavingsRepository,
    InMemoryTodoRepository,
    RepositoryRegistry,
    StaticCategoryLookup,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CategoryLookup",
    "DiaryRepository",
    "DomainRepository",
    "FinanceRepository",
    "HabitRepository",
    "SavingsRepository",
    "TodoRepository",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryDiaryRepository",
    "InMemoryFinanceRepository",
    "InMemoryHabitRepository",
    "InMemorySavingsRepository",
    "InMemoryTodoRepository",
    "RepositoryRegistry",
    "StaticCategoryLookup",
]
