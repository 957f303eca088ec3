"""Approval activities: manager review and the auto-approval sweep."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from temporalio import activity
from temporalio.exceptions import ApplicationError

from activities import ingest as ingest_activities
from approval.reviewer import ApprovalReviewer
from core.errors import IngestionError
from core.observability.logging import get_logger, with_correlation


logger = get_logger(__name__)

REVIEW_ACTIONS = ("approve", "reject")


@dataclass
class ReviewPendingInput:
    """Input for review_pending_activity activity.

    Attributes:
        pending_id: Pending approval row
        reviewer_id: Owner or manager performing the review
        action: "approve" or "reject"
        reason: Rejection reason (reject only)
    """
    pending_id: str
    reviewer_id: str
    action: str
    reason: Optional[str] = None


@dataclass
class AutoApproveInput:
    """Input for auto_approve_due_activities activity.

    Attributes:
        as_of: ISO-8601 instant to evaluate deadlines at (default: now)
    """
    as_of: Optional[str] = None


def _reviewer() -> ApprovalReviewer:
    return ApprovalReviewer(ingest_activities._store(), audit=ingest_activities._audit())


@activity.defn
async def review_pending_activity(input: ReviewPendingInput) -> Dict[str, Any]:
    """Approve or reject one pending activity.

    Domain failures (not found, forbidden, already reviewed) are
    non-retryable.
    """
    if input.action not in REVIEW_ACTIONS:
        raise ApplicationError(f"Unknown review action: {input.action}", non_retryable=True)

    with with_correlation(pending_id=input.pending_id, actor_id=input.reviewer_id, activity_name="review_pending_activity"):
        reviewer = _reviewer()
        try:
            if input.action == "approve":
                result = await asyncio.to_thread(reviewer.approve, input.pending_id, input.reviewer_id)
            else:
                result = await asyncio.to_thread(reviewer.reject, input.pending_id, input.reviewer_id, input.reason)
        except IngestionError as e:
            raise ApplicationError(e.message, e.to_dict(), type=e.code, non_retryable=not e.retryable) from e

    return result.model_dump(mode="json")


@activity.defn
async def auto_approve_due_activities(input: AutoApproveInput) -> Dict[str, Any]:
    """Auto-approve every pending activity whose deadline has passed."""
    now = None
    if input.as_of:
        now = datetime.fromisoformat(input.as_of)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
    with with_correlation(activity_name="auto_approve_due_activities"):
        results = await asyncio.to_thread(_reviewer().auto_approve_due, now)

    return {
        "approved": len(results),
        "results": [r.model_dump(mode="json") for r in results],
    }
