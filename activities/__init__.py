"""Activity definitions module."""

from activities.ingest import (
    extract_activity_candidates,
    ingest_activity_candidates,
    ExtractCandidatesInput,
    ExtractCandidatesOutput,
    IngestCandidatesInput,
)
from activities.approvals import (
    review_pending_activity,
    auto_approve_due_activities,
    ReviewPendingInput,
    AutoApproveInput,
)

__all__ = [
    # Ingestion activities
    "extract_activity_candidates",
    "ingest_activity_candidates",
    "ExtractCandidatesInput",
    "ExtractCandidatesOutput",
    "IngestCandidatesInput",
    # Approval activities
    "review_pending_activity",
    "auto_approve_due_activities",
    "ReviewPendingInput",
    "AutoApproveInput",
]
