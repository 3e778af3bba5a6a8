"""Services package."""

from life_assistant.services.repositories import (
    AuditStorageInterface,
    CategoryLookup,
    DuplicateError,
    NotFoundError,
    InMemoryAuditStorage,
    RepositoryRegistry,
    StaticCategoryLookup,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "CategoryLookup",
    "DuplicateError",
    "NotFoundError",
    "InMemoryAuditStorage",
    "RepositoryRegistry",
    "StaticCategoryLookup",
    "StorageConnectionError",
    "StorageError",
]
