"""Audit logging package."""

from simplebudget.audit.logger import AuditLogger, configure_log_level, create_session_id

__all__ = ["AuditLogger", "configure_log_level", "create_session_id"]
