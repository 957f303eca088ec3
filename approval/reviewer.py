"""Manager review of queued activities.

Approving writes the queued payload's records and marks the row approved in
one transaction. Rejecting only marks the row. The auto-approval sweep
approves every overdue row on farms that allow it.
"""

from datetime import datetime, timezone
from typing import List, Optional

from approval.gate import transition
from core.audit.events import AuditEventType, AuditLogger
from core.errors import ApprovalStateError, AuthorizationError, NotFoundError
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_review
from models.activity import ApprovalStatus, FarmRole, PendingApproval
from models.responses import ReviewResult
from storage.base import FarmDataStore
from storage.records import build_records


logger = get_logger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"


class ApprovalReviewer:
    """Applies approve, reject and auto-approve decisions."""

    def __init__(self, store: FarmDataStore, audit: Optional[AuditLogger] = None):
        self.store = store
        self.audit = audit or AuditLogger()

    def _load(self, pending_id: str) -> PendingApproval:
        pending = self.store.get_pending(pending_id)
        if pending is None:
            raise NotFoundError(
                "Hindi makita ang nakabinbing aktibidad.",
                f"Pending activity {pending_id} was not found.",
            )
        return pending

    def _require_reviewer(self, pending: PendingApproval, reviewer_id: str) -> None:
        role = self.store.get_member_role(pending.farm_id, reviewer_id)
        if role not in (FarmRole.OWNER, FarmRole.MANAGER):
            raise AuthorizationError(
                "Ang may-ari o manager lang ng farm ang pwedeng mag-review ng aktibidad.",
                "Only farm owners or managers can review activities.",
            )

    def _finalize(
        self,
        pending: PendingApproval,
        status: ApprovalStatus,
        now: datetime,
        reviewer_id: Optional[str],
        rejection_reason: Optional[str] = None,
    ) -> ReviewResult:
        transition(pending.status, status)

        records = []
        if status in (ApprovalStatus.APPROVED, ApprovalStatus.AUTO_APPROVED):
            records = build_records(
                pending.resolved_activity(),
                pending.farm_id,
                created_by=pending.submitted_by,
                submission_id=pending.submission_id,
            )

        changed = self.store.finalize_pending(
            pending.id,
            status,
            reviewed_at=now,
            reviewed_by=reviewer_id,
            rejection_reason=rejection_reason,
            records=records,
        )
        if not changed:
            # Another reviewer or the sweep got there first
            raise ApprovalStateError(
                "Na-review na ang aktibidad na ito.",
                "This activity has already been reviewed.",
            )

        record_review(status.value)
        return ReviewResult(
            pending_id=pending.id,
            status=status.value,
            record_count=len(records),
            reviewed_by=reviewer_id,
            reviewed_at=now,
        )

    def approve(self, pending_id: str, reviewer_id: str, now: Optional[datetime] = None) -> ReviewResult:
        """Approve a pending activity and write its records.

        Raises:
            NotFoundError: Unknown pending_id
            AuthorizationError: Reviewer is not an owner or manager of the farm
            ApprovalStateError: The row is no longer pending
        """
        now = now or datetime.now(timezone.utc)
        pending = self._load(pending_id)

        with with_correlation(farm_id=pending.farm_id, pending_id=pending.id, actor_id=reviewer_id):
            self._require_reviewer(pending, reviewer_id)
            result = self._finalize(pending, ApprovalStatus.APPROVED, now, reviewer_id)
            result.message = (
                f"Naaprubahan ang {pending.activity_type.value}. / "
                f"{pending.activity_type.value} approved."
            )
            logger.info(f"Pending activity approved, {result.record_count} record(s) written")
            self.audit.log_info(
                AuditEventType.APPROVAL_GRANTED,
                f"{pending.activity_type.value} approved by {reviewer_id}",
                farm_id=pending.farm_id,
                submission_id=pending.submission_id,
                pending_id=pending.id,
                actor=reviewer_id,
                details={"record_count": result.record_count},
            )
            return result

    def reject(
        self,
        pending_id: str,
        reviewer_id: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReviewResult:
        """Reject a pending activity. No records are written."""
        now = now or datetime.now(timezone.utc)
        pending = self._load(pending_id)
        reason = reason.strip() if reason and reason.strip() else DEFAULT_REJECTION_REASON

        with with_correlation(farm_id=pending.farm_id, pending_id=pending.id, actor_id=reviewer_id):
            self._require_reviewer(pending, reviewer_id)
            result = self._finalize(pending, ApprovalStatus.REJECTED, now, reviewer_id, reason)
            result.message = (
                f"Tinanggihan ang {pending.activity_type.value}: {reason} / "
                f"{pending.activity_type.value} rejected: {reason}"
            )
            logger.info(f"Pending activity rejected: {reason}")
            self.audit.log_info(
                AuditEventType.APPROVAL_REJECTED,
                f"{pending.activity_type.value} rejected by {reviewer_id}",
                farm_id=pending.farm_id,
                submission_id=pending.submission_id,
                pending_id=pending.id,
                actor=reviewer_id,
                details={"reason": reason},
            )
            return result

    def auto_approve_due(
        self,
        now: Optional[datetime] = None,
        farm_id: Optional[str] = None,
    ) -> List[ReviewResult]:
        """Auto-approve overdue pending rows on farms with auto-approval on.

        Sweeps every farm unless farm_id limits it to one.
        """
        now = now or datetime.now(timezone.utc)
        results = []

        for pending in self.store.list_due_pending(now, farm_id):
            settings = self.store.get_approval_settings(pending.farm_id)
            if settings is not None and not settings.auto_approve_enabled:
                continue

            with with_correlation(farm_id=pending.farm_id, pending_id=pending.id, stage="auto_approve"):
                try:
                    result = self._finalize(pending, ApprovalStatus.AUTO_APPROVED, now, None)
                except ApprovalStateError:
                    logger.info("Pending activity reviewed concurrently, skipping")
                    continue

                result.message = f"{pending.activity_type.value} auto-approved"
                self.audit.log_info(
                    AuditEventType.APPROVAL_AUTO_GRANTED,
                    f"{pending.activity_type.value} auto-approved after deadline",
                    farm_id=pending.farm_id,
                    submission_id=pending.submission_id,
                    pending_id=pending.id,
                    details={"record_count": result.record_count},
                )
                results.append(result)

        logger.info(f"Auto-approval sweep approved {len(results)} pending activities")
        return results
