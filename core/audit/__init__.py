"""Core audit module - audit event tracking and persistence."""

from core.audit.events import (
    AuditBackend,
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditSeverity,
    InMemoryAuditBackend,
    SQLiteAuditBackend,
    create_audit_event,
)

__all__ = [
    "AuditBackend",
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "AuditSeverity",
    "InMemoryAuditBackend",
    "SQLiteAuditBackend",
    "create_audit_event",
]
