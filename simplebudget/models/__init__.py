"""
Data Models Package

This package contains all Pydantic models used in SimpleBudget.
Every document read from the store or an import must conform to these schemas.
"""

from simplebudget.models.ledger import (
    CURRENT_BUCKET,
    STATE_VERSION,
    BudgetSnapshot,
    ExportDocument,
    LedgerSettings,
    LedgerState,
    MonthBucket,
    MonthSummary,
    ProgressLevel,
    RolloverResult,
    Transaction,
    TransactionKind,
    ValidationIssue,
)
from simplebudget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CURRENT_BUCKET",
    "STATE_VERSION",
    "BudgetSnapshot",
    "ExportDocument",
    "LedgerSettings",
    "LedgerState",
    "MonthBucket",
    "MonthSummary",
    "ProgressLevel",
    "RolloverResult",
    "Transaction",
    "TransactionKind",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
