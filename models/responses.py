"""Response payloads returned by the ingestion pipeline."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.activity import DistributionPlan


class IngestionOutcome(str, Enum):
    """Terminal outcome of one submission."""
    COMMITTED = "committed"
    QUEUED = "queued"
    NEEDS_CLARIFICATION = "needs_clarification"
    REJECTED = "rejected"


class ActivityOutcome(BaseModel):
    """What happened to one resolved activity."""
    activity_type: str
    status: str  # "committed" or "queued"
    animal_id: Optional[str] = None
    record_date: Optional[str] = None
    record_count: int = 0
    pending_id: Optional[str] = None
    auto_approve_at: Optional[datetime] = None
    feed_type: Optional[str] = None
    kilograms: Optional[float] = None
    feed_match_strategy: Optional[str] = None
    distribution: Optional[DistributionPlan] = None


class IngestionResponse(BaseModel):
    """Result of processing one transcription.

    Attributes:
        outcome: committed, queued, needs_clarification or rejected
        code: Machine-readable error code for the non-success outcomes
        message: Bilingual human-readable text
        options: Candidate values for a clarification request
        retryable: True when the caller may resubmit unchanged
        activities: Per-activity results for committed/queued submissions
        submission_id: Idempotency key of the submission
    """
    outcome: IngestionOutcome
    code: Optional[str] = None
    message: str
    options: List[str] = Field(default_factory=list)
    retryable: bool = False
    activities: List[ActivityOutcome] = Field(default_factory=list)
    submission_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.outcome in (IngestionOutcome.COMMITTED, IngestionOutcome.QUEUED)


class ReviewResult(BaseModel):
    """Result of approving, rejecting or auto-approving one pending row."""
    pending_id: str
    status: str
    record_count: int = 0
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    message: str = ""
