"""
Audit Models for SimpleBudget

Every user action and every automatic month rollover is recorded as an
audit event. This provides:
1. Traceability of every change to the ledger
2. Debugging information when a write fails
3. A recent-activity feed for the UI

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    SESSION_STARTED = "session_started"
    STATE_LOAD_FAILED = "state_load_failed"
    MONTH_ROLLED_OVER = "month_rolled_over"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_EDITED = "transaction_edited"
    TRANSACTION_MOVED = "transaction_moved"
    TRANSACTION_DELETED = "transaction_deleted"
    VALIDATION_FAILED = "validation_failed"

    # Settings and data management
    SETTINGS_SAVED = "settings_saved"
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    IMPORT_REJECTED = "import_rejected"
    DATA_CLEARED = "data_cleared"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which month or transaction is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'month', 'ledger')"
    )
    entity_id: Optional[str] = None
    session_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one app session"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "session_id": str(self.session_id) if self.session_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(
            tx_id="a1b2", amount="-12.50", month="2024-03", session_id=sid,
        )
        audit_logger.log(event)
    """

    @staticmethod
    def session_started(month: str, session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            entity_type="ledger",
            entity_id=month,
            session_id=session_id,
            description=f"Session opened in {month}",
        )

    @staticmethod
    def state_load_failed(error: str, session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            session_id=session_id,
            description="Stored data could not be read; starting with an empty ledger",
            error_message=error,
        )

    @staticmethod
    def month_rolled_over(
        archived_month: str,
        new_month: str,
        archived_goal: str,
        new_allowance: str,
        pruned_months: list[str],
        session_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_ROLLED_OVER,
            entity_type="month",
            entity_id=archived_month,
            session_id=session_id,
            description=f"Archived {archived_month}, started {new_month}",
            details={
                "new_month": new_month,
                "archived_goal": archived_goal,
                "new_allowance": new_allowance,
                "pruned_months": pruned_months,
            },
        )

    @staticmethod
    def transaction_added(
        tx_id: str,
        amount: str,
        month: str,
        session_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=tx_id,
            session_id=session_id,
            description=f"Transaction of {amount} added to {month}",
            details={"amount": amount, "month": month},
            is_user_action=True,
        )

    @staticmethod
    def transaction_edited(
        tx_id: str,
        source: str,
        destination: str,
        amount: str,
        session_id: Optional[UUID] = None,
    ) -> AuditEvent:
        moved = source != destination
        return AuditEvent(
            event_type=(
                AuditEventType.TRANSACTION_MOVED if moved
                else AuditEventType.TRANSACTION_EDITED
            ),
            entity_type="transaction",
            entity_id=tx_id,
            session_id=session_id,
            description=(
                f"Transaction moved from {source} to {destination}" if moved
                else f"Transaction in {source} edited"
            ),
            details={"source": source, "destination": destination, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        tx_id: str,
        bucket: str,
        removed: bool,
        session_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=tx_id,
            session_id=session_id,
            description=(
                f"Transaction removed from {bucket}" if removed
                else f"Transaction already absent from {bucket}"
            ),
            details={"bucket": bucket, "removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        session_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            session_id=session_id,
            description=f"{operation} rejected with {len(issues)} issue(s)",
            details={"operation": operation, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def settings_saved(annual_budget: str, session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            entity_type="settings",
            session_id=session_id,
            description=f"Annual budget set to {annual_budget}",
            details={"annual_budget": annual_budget},
            is_user_action=True,
        )

    @staticmethod
    def data_exported(filename: str, session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            entity_type="ledger",
            session_id=session_id,
            description=f"Data exported as {filename}",
            details={"filename": filename},
            is_user_action=True,
        )

    @staticmethod
    def data_imported(
        current_month: str,
        history_months: int,
        pruned_months: list[str],
        session_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            entity_type="ledger",
            entity_id=current_month,
            session_id=session_id,
            description=f"Ledger replaced by import ({history_months} archived months)",
            details={"pruned_months": pruned_months},
            is_user_action=True,
        )

    @staticmethod
    def import_rejected(error: str, session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            session_id=session_id,
            description="Import rejected; existing data kept",
            error_message=error,
            is_user_action=True,
        )

    @staticmethod
    def data_cleared(session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            session_id=session_id,
            description="All transactions, history and settings cleared",
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(error: str, session_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            session_id=session_id,
            description="Storage write failed; changes kept in memory only",
            error_message=error,
        )
