"""
Storage Services Package

Provides the abstract key-value interface the ledger is persisted through,
plus a JSON-file backend and in-memory backends for tests.
"""

from simplebudget.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    PersistenceError,
    StorageError,
)
from simplebudget.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStore,
)
from simplebudget.services.storage.json_file import JsonFileStore

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryStore",
    "JsonFileStore",
]
