"""
JSON File Storage Implementation

Each key is stored as `<key>.json` inside a data directory.

Writes go to a temporary file in the same directory which then replaces
the target with os.replace, so a reader never sees a half-written document.
Transient OS errors are retried with exponential backoff; once the attempts
are exhausted the failure surfaces as PersistenceError.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from simplebudget.config import get_settings
from simplebudget.services.storage.interface import (
    KeyValueStore,
    PersistenceError,
    StorageError,
)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(KeyValueStore):
    """Key-value store backed by one JSON file per key."""

    def __init__(
        self,
        data_dir: Optional[str] = None,
        write_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._dir = Path(data_dir or settings.data_dir)
        self._attempts = write_attempts or settings.write_attempts
        self._logger = structlog.get_logger(__name__)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write_atomic(path, value)
        except (OSError, RetryError) as e:
            self._logger.error("store_write_failed", path=str(path), error=str(e))
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e

    def _write_atomic(self, path: Path, value: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=path.name + "-",
            suffix=".tmp",
            dir=self._dir,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, path)
        except OSError:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise
