"""
Abstract Storage Interface

DESIGN DECISION: The ledger is persisted as one opaque text blob under a
single key. The store knows nothing about budgets. This allows us to:
1. Swap the JSON file store for any other key-value backend
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The store assumes a single writer. There is no locking and no merge: a
second concurrent session can overwrite the first one's last write.
"""

from abc import ABC, abstractmethod
from typing import Optional

from simplebudget.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract get/set of text blobs.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the blob stored under a key in one atomic write.

        Raises:
            PersistenceError: If the write fails (e.g., quota exceeded)
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if something was removed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """
    A write to the store failed.

    The in-memory change that triggered the write has already been applied
    and is not rolled back.
    """
    pass
