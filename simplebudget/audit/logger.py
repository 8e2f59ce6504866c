"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability
2. Debugging capability when a write fails
3. A history of actions the user can see

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports session IDs to trace the events of one app session
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from simplebudget.models.audit import AuditEvent
from simplebudget.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_log_level(level: str) -> None:
    """Route structlog output through stdlib at the configured level."""
    logging.basicConfig(format="%(message)s", level=level.upper(), force=True)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if configured (for the recent-activity feed)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        session_id: Optional[UUID] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            session_id: Stamped on events that don't carry one.
        """
        self._storage = storage
        self.session_id = session_id or create_session_id()
        self._logger = structlog.get_logger("simplebudget.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.session_id is None:
            event = event.model_copy(update={"session_id": self.session_id})

        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, limit: int = 20) -> list[AuditEvent]:
        """Newest events first; empty when no storage is configured."""
        if self._storage is None:
            return []
        return self._storage.get_recent_events(limit)


def create_session_id() -> UUID:
    """
    Create a new session ID for tracking related events.

    Use this once per app activation and pass it to the AuditLogger.
    """
    return uuid4()
