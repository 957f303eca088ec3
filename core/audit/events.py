"""Audit event logging and persistence.

Records what happened to every submission and every pending approval, from
receipt through commit, queueing, clarification, rejection and review.
Supports multiple persistence backends.
"""

import json
import sqlite3
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.observability.logging import get_logger


logger = get_logger(__name__)


class AuditSeverity(str, Enum):
    """Severity levels for audit events."""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class AuditEventType(str, Enum):
    """Standard audit event types."""
    # Submission events
    SUBMISSION_RECEIVED = "SUBMISSION_RECEIVED"
    SUBMISSION_COMMITTED = "SUBMISSION_COMMITTED"
    SUBMISSION_QUEUED = "SUBMISSION_QUEUED"
    SUBMISSION_NEEDS_CLARIFICATION = "SUBMISSION_NEEDS_CLARIFICATION"
    SUBMISSION_REJECTED = "SUBMISSION_REJECTED"
    SUBMISSION_REPLAYED = "SUBMISSION_REPLAYED"

    # Extraction events
    EXTRACTION_COMPLETED = "EXTRACTION_COMPLETED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"

    # Review events
    APPROVAL_GRANTED = "APPROVAL_GRANTED"
    APPROVAL_AUTO_GRANTED = "APPROVAL_AUTO_GRANTED"
    APPROVAL_REJECTED = "APPROVAL_REJECTED"


class AuditEvent(BaseModel):
    """An audit event for tracking pipeline actions."""
    event_id: str = Field(..., description="Unique event identifier")
    timestamp: datetime = Field(..., description="Event timestamp (UTC)")
    event_type: str = Field(..., description="AuditEventType value")
    severity: AuditSeverity = Field(default=AuditSeverity.INFO)

    # Context
    farm_id: Optional[str] = Field(None, description="Farm the event belongs to")
    submission_id: Optional[str] = Field(None, description="Voice submission")
    pending_id: Optional[str] = Field(None, description="Pending approval row")
    workflow_id: Optional[str] = Field(None, description="Temporal workflow ID")

    message: str = Field(..., description="Human-readable message")
    details: Dict[str, Any] = Field(default_factory=dict)
    actor: str = Field(default="system", description="Who/what performed the action")


def create_audit_event(
    event_type: AuditEventType,
    message: str,
    severity: AuditSeverity = AuditSeverity.INFO,
    farm_id: Optional[str] = None,
    submission_id: Optional[str] = None,
    pending_id: Optional[str] = None,
    workflow_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    actor: str = "system",
) -> AuditEvent:
    """Create a new audit event with auto-generated ID and timestamp.

    Args:
        event_type: Type of event
        message: Human-readable message
        severity: Event severity level
        farm_id: Farm the event belongs to
        submission_id: Associated voice submission
        pending_id: Associated pending approval
        workflow_id: Temporal workflow ID
        details: Additional structured details
        actor: User ID, or "system" for automated actions

    Returns:
        Configured AuditEvent ready for logging
    """
    return AuditEvent(
        event_id=str(uuid.uuid4()),
        timestamp=datetime.now(timezone.utc),
        event_type=event_type.value,
        severity=severity,
        farm_id=farm_id,
        submission_id=submission_id,
        pending_id=pending_id,
        workflow_id=workflow_id,
        message=message,
        details=details or {},
        actor=actor,
    )


class AuditBackend(ABC):
    """Abstract base class for audit persistence backends."""

    @abstractmethod
    def log(self, event: AuditEvent) -> None:
        """Persist an audit event."""
        pass

    @abstractmethod
    def query(
        self,
        event_type: Optional[str] = None,
        farm_id: Optional[str] = None,
        submission_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Query audit events with filters."""
        pass


class SQLiteAuditBackend(AuditBackend):
    """Audit backend storing events in the farm database's audit_events table."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self) -> None:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS audit_events (
                    event_id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    severity TEXT NOT NULL,
                    farm_id TEXT,
                    submission_id TEXT,
                    pending_id TEXT,
                    workflow_id TEXT,
                    message TEXT NOT NULL,
                    details TEXT,
                    actor TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_audit_farm_time
                ON audit_events(farm_id, timestamp)
            """)
            conn.commit()
        finally:
            conn.close()

    def log(self, event: AuditEvent) -> None:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute(
                """
                INSERT INTO audit_events
                (event_id, timestamp, event_type, severity, farm_id, submission_id,
                 pending_id, workflow_id, message, details, actor)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.event_id,
                    event.timestamp.isoformat(),
                    event.event_type,
                    event.severity.value,
                    event.farm_id,
                    event.submission_id,
                    event.pending_id,
                    event.workflow_id,
                    event.message,
                    json.dumps(event.details, default=str),
                    event.actor,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def query(
        self,
        event_type: Optional[str] = None,
        farm_id: Optional[str] = None,
        submission_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        clauses = []
        params: List[Any] = []
        if event_type:
            clauses.append("event_type = ?")
            params.append(event_type)
        if farm_id:
            clauses.append("farm_id = ?")
            params.append(farm_id)
        if submission_id:
            clauses.append("submission_id = ?")
            params.append(submission_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(limit)

        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(
                f"SELECT * FROM audit_events {where} ORDER BY timestamp, event_id LIMIT ?",
                params,
            ).fetchall()
        finally:
            conn.close()

        return [
            AuditEvent(
                event_id=r["event_id"],
                timestamp=datetime.fromisoformat(r["timestamp"]),
                event_type=r["event_type"],
                severity=AuditSeverity(r["severity"]),
                farm_id=r["farm_id"],
                submission_id=r["submission_id"],
                pending_id=r["pending_id"],
                workflow_id=r["workflow_id"],
                message=r["message"],
                details=json.loads(r["details"]) if r["details"] else {},
                actor=r["actor"],
            )
            for r in rows
        ]


class InMemoryAuditBackend(AuditBackend):
    """In-memory audit backend for testing."""

    def __init__(self):
        self._events: List[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self._events.append(event)

    def query(
        self,
        event_type: Optional[str] = None,
        farm_id: Optional[str] = None,
        submission_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        results = []
        for event in self._events:
            if event_type and event.event_type != event_type:
                continue
            if farm_id and event.farm_id != farm_id:
                continue
            if submission_id and event.submission_id != submission_id:
                continue
            results.append(event)
            if len(results) >= limit:
                break
        return results

    def clear(self) -> None:
        """Clear all events (for testing)."""
        self._events.clear()


class AuditLogger:
    """Main audit logger that supports multiple backends.

    Usage:
        audit = AuditLogger()
        audit.add_backend(SQLiteAuditBackend(settings.db_path))
        audit.log_info(
            AuditEventType.SUBMISSION_COMMITTED,
            "Milking record committed",
            farm_id="farm-1",
        )
    """

    def __init__(self):
        self._backends: List[AuditBackend] = []

    def add_backend(self, backend: AuditBackend) -> None:
        """Add an audit backend."""
        self._backends.append(backend)

    def log(self, event: AuditEvent) -> None:
        """Log event to all backends.

        A failing backend is logged and skipped; the audit trail never
        aborts the action being audited.
        """
        for backend in self._backends:
            try:
                backend.log(event)
            except Exception as e:
                logger.error(f"Audit logging failed for backend {type(backend).__name__}: {e}")

    def log_info(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        """Log an INFO level event."""
        self.log(create_audit_event(event_type, message, AuditSeverity.INFO, **kwargs))

    def log_warning(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        """Log a WARN level event."""
        self.log(create_audit_event(event_type, message, AuditSeverity.WARN, **kwargs))

    def log_error(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        """Log an ERROR level event."""
        self.log(create_audit_event(event_type, message, AuditSeverity.ERROR, **kwargs))

    def query(
        self,
        event_type: Optional[str] = None,
        farm_id: Optional[str] = None,
        submission_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Query events (returns first backend's results)."""
        if not self._backends:
            return []
        return self._backends[0].query(event_type, farm_id, submission_id, limit)
