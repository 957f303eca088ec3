"""Approval gate and pending-approval state machine.

pending -> approved | auto_approved | rejected

All three targets are terminal.
"""

import uuid
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from approval.policy import ApprovalDecision, ApprovalPolicy
from core.errors import ApprovalStateError
from models.activity import ApprovalStatus, PendingApproval, ResolvedActivity


TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({
        ApprovalStatus.APPROVED,
        ApprovalStatus.AUTO_APPROVED,
        ApprovalStatus.REJECTED,
    }),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.AUTO_APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}


def can_transition(current: ApprovalStatus, target: ApprovalStatus) -> bool:
    return target in TRANSITIONS[current]


def transition(current: ApprovalStatus, target: ApprovalStatus) -> ApprovalStatus:
    """Validate a status change.

    Raises:
        ApprovalStateError: The change is not allowed
    """
    if not can_transition(current, target):
        raise ApprovalStateError(
            f"Ang aktibidad na ito ay {current.value} na at hindi na mababago.",
            f"This activity is already {current.value} and cannot be {target.value}.",
        )
    return target


class ApprovalGate:
    """Consults the approval policy and builds pending-approval rows."""

    def __init__(self, policy: ApprovalPolicy):
        self.policy = policy

    def evaluate(self, farm_id: str, actor_id: str, activity: ResolvedActivity, now: datetime) -> ApprovalDecision:
        return self.policy.decide(farm_id, actor_id, activity.activity_type.value, now)

    def build_pending(
        self,
        activity: ResolvedActivity,
        farm_id: str,
        actor_id: str,
        decision: ApprovalDecision,
        now: datetime,
        submission_id: Optional[str] = None,
    ) -> PendingApproval:
        """Queue entry holding the fully resolved payload, plan included."""
        return PendingApproval(
            id=str(uuid.uuid4()),
            farm_id=farm_id,
            submitted_by=actor_id,
            activity_type=activity.activity_type,
            activity_data=activity.model_dump(mode="json"),
            animal_ids=activity.animal_ids,
            status=ApprovalStatus.PENDING,
            submitted_at=now,
            auto_approve_at=decision.auto_approve_at,
            submission_id=submission_id,
        )
