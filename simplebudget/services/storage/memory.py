"""
In-Memory Storage

Dictionary-backed stores for tests and for running without a data
directory. The key-value store can be given a byte quota so that a write
fails the way a full browser storage area does.
"""

from collections import deque
from typing import Optional

from simplebudget.models.audit import AuditEvent
from simplebudget.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    PersistenceError,
)


class InMemoryStore(KeyValueStore):
    """Key-value store held in a dict."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if others + len(value.encode("utf-8")) > self._quota_bytes:
                raise PersistenceError(
                    f"Storage quota exceeded writing {key} "
                    f"({self._quota_bytes} bytes available)"
                )
        self._data[key] = value
        self.write_count += 1

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded in-memory audit trail, newest events kept."""

    def __init__(self, max_events: int = 500):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
