"""Approval queue endpoints for farm owners and managers."""

import asyncio
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from api.deps import get_actor, get_reviewer, get_store, require_reviewer_role
from approval.reviewer import ApprovalReviewer
from models.activity import ActivityKind, ActorIdentity, ApprovalStatus, PendingApproval
from models.responses import ReviewResult
from storage.farm_store import SQLiteFarmStore


router = APIRouter(dependencies=[Depends(require_reviewer_role)])


class PendingActivityResponse(BaseModel):
    """One row of the approval queue."""
    id: str
    activity_type: ActivityKind
    status: ApprovalStatus
    submitted_by: str
    submitted_at: datetime
    auto_approve_at: Optional[datetime] = None
    animal_ids: List[str] = []
    activity_data: dict
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AutoApproveResponse(BaseModel):
    approved: int
    results: List[ReviewResult]


def _pending_for_farm(store: SQLiteFarmStore, pending_id: str, farm_id: str) -> PendingApproval:
    pending = store.get_pending(pending_id)
    if pending is None or pending.farm_id != farm_id:
        raise HTTPException(status_code=404, detail=f"Pending activity {pending_id} not found")
    return pending


@router.get("", response_model=List[PendingActivityResponse])
async def list_pending(
    status: Optional[ApprovalStatus] = Query(ApprovalStatus.PENDING),
    actor: ActorIdentity = Depends(get_actor),
    store: SQLiteFarmStore = Depends(get_store),
) -> List[PendingActivityResponse]:
    """List the farm's queued activities (pending by default)."""
    rows = await asyncio.to_thread(store.list_pending, actor.farm_id, status)
    return [PendingActivityResponse(**row.model_dump()) for row in rows]


@router.post("/{pending_id}/approve", response_model=ReviewResult)
async def approve(
    pending_id: str,
    actor: ActorIdentity = Depends(get_actor),
    store: SQLiteFarmStore = Depends(get_store),
    reviewer: ApprovalReviewer = Depends(get_reviewer),
) -> ReviewResult:
    """Approve a queued activity and write its records."""
    _pending_for_farm(store, pending_id, actor.farm_id)
    return await asyncio.to_thread(reviewer.approve, pending_id, actor.user_id)


@router.post("/{pending_id}/reject", response_model=ReviewResult)
async def reject(
    pending_id: str,
    body: Optional[RejectRequest] = None,
    actor: ActorIdentity = Depends(get_actor),
    store: SQLiteFarmStore = Depends(get_store),
    reviewer: ApprovalReviewer = Depends(get_reviewer),
) -> ReviewResult:
    """Reject a queued activity; nothing is written to the activity tables."""
    _pending_for_farm(store, pending_id, actor.farm_id)
    reason = body.reason if body else None
    return await asyncio.to_thread(reviewer.reject, pending_id, actor.user_id, reason)


@router.post("/auto-approve", response_model=AutoApproveResponse)
async def run_auto_approve(
    actor: ActorIdentity = Depends(get_actor),
    reviewer: ApprovalReviewer = Depends(get_reviewer),
) -> AutoApproveResponse:
    """Run the auto-approval sweep for the actor's farm now instead of waiting for the schedule."""
    results = await asyncio.to_thread(reviewer.auto_approve_due, None, actor.farm_id)
    return AutoApproveResponse(approved=len(results), results=results)
