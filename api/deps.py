"""Request dependencies: store, pipeline services and the verified actor.

Tests swap any of these through `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from approval.reviewer import ApprovalReviewer
from core.audit.events import AuditLogger, SQLiteAuditBackend
from core.config import get_settings
from extraction.oracle import ExtractionOracle, OpenAIExtractionOracle
from ingestion.orchestrator import ActivityIngestionOrchestrator
from models.activity import ActorIdentity, FarmRole
from storage.farm_store import SQLiteFarmStore


_store: Optional[SQLiteFarmStore] = None
_oracle: Optional[ExtractionOracle] = None
_audit: Optional[AuditLogger] = None


def get_store() -> SQLiteFarmStore:
    global _store
    if _store is None:
        settings = get_settings()
        _store = SQLiteFarmStore(settings.db_path, timeout_seconds=settings.db_timeout_seconds)
        _store.init_schema()
    return _store


def get_oracle() -> ExtractionOracle:
    global _oracle
    if _oracle is None:
        _oracle = OpenAIExtractionOracle()
    return _oracle


def get_audit() -> AuditLogger:
    global _audit
    if _audit is None:
        _audit = AuditLogger()
        _audit.add_backend(SQLiteAuditBackend(get_settings().db_path))
    return _audit


def get_orchestrator(
    store: SQLiteFarmStore = Depends(get_store),
    oracle: ExtractionOracle = Depends(get_oracle),
    audit: AuditLogger = Depends(get_audit),
) -> ActivityIngestionOrchestrator:
    return ActivityIngestionOrchestrator(store, oracle=oracle, audit=audit)


def get_candidate_ingestor(
    store: SQLiteFarmStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit),
) -> ActivityIngestionOrchestrator:
    """Orchestrator without an extraction oracle, for pre-extracted candidates."""
    return ActivityIngestionOrchestrator(store, audit=audit)


def get_reviewer(
    store: SQLiteFarmStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit),
) -> ApprovalReviewer:
    return ApprovalReviewer(store, audit=audit)


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_farm_id: Optional[str] = Header(None),
) -> ActorIdentity:
    """Actor identity as verified by the upstream authentication layer."""
    if not x_user_id or not x_farm_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id or X-Farm-Id header")
    return ActorIdentity(user_id=x_user_id, farm_id=x_farm_id)


def get_member_role(
    actor: ActorIdentity = Depends(get_actor),
    store: SQLiteFarmStore = Depends(get_store),
) -> FarmRole:
    role = store.get_member_role(actor.farm_id, actor.user_id)
    if role is None:
        raise HTTPException(status_code=403, detail="Not a member of this farm")
    return role


def require_reviewer_role(role: FarmRole = Depends(get_member_role)) -> FarmRole:
    if role not in (FarmRole.OWNER, FarmRole.MANAGER):
        raise HTTPException(status_code=403, detail="Only farm owners or managers can review activities")
    return role
