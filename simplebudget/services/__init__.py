"""Services package."""

from simplebudget.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    PersistenceError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "PersistenceError",
    "StorageError",
]
