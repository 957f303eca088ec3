"""Approval policies.

The ingestion pipeline only asks a policy whether an (farm, actor, activity
type) triple needs manager review and when it auto-approves. Any object
with a matching decide() method can be plugged in.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Protocol

from models.activity import FarmRole
from storage.base import FarmDataStore


DEFAULT_AUTO_APPROVE_HOURS = 48


@dataclass
class ApprovalDecision:
    """Whether an activity must be queued, and until when."""
    required: bool
    auto_approve_at: Optional[datetime] = None
    reason: str = ""


class ApprovalPolicy(Protocol):
    """Decides if an activity needs manager review."""

    def decide(self, farm_id: str, actor_id: str, activity_type: str, now: datetime) -> ApprovalDecision:
        ...


class FarmSettingsApprovalPolicy:
    """Policy driven by farm membership and farm_approval_settings.

    - Owners and managers never need approval
    - A farm with approval disabled never needs approval
    - A farm without settings requires approval for every type
    - require_approval_for_types, when set, limits approval to those types
    """

    def __init__(self, store: FarmDataStore):
        self.store = store

    def decide(self, farm_id: str, actor_id: str, activity_type: str, now: datetime) -> ApprovalDecision:
        role = self.store.get_member_role(farm_id, actor_id)
        if role in (FarmRole.OWNER, FarmRole.MANAGER):
            return ApprovalDecision(required=False, reason=f"Submitted by {role.value}")

        settings = self.store.get_approval_settings(farm_id)
        hours = settings.auto_approve_hours if settings else DEFAULT_AUTO_APPROVE_HOURS
        deadline = now + timedelta(hours=hours)

        if settings is None:
            return ApprovalDecision(True, deadline, "Farm has no approval settings")

        if not settings.approval_enabled:
            return ApprovalDecision(required=False, reason="Approval disabled for farm")

        if settings.require_approval_for_types is not None:
            if activity_type in settings.require_approval_for_types:
                return ApprovalDecision(True, deadline, f"Approval required for {activity_type}")
            return ApprovalDecision(required=False, reason=f"No approval required for {activity_type}")

        return ApprovalDecision(True, deadline, "Approval required for all farmhand activities")


class NoApprovalPolicy:
    """Commits everything immediately."""

    def decide(self, farm_id: str, actor_id: str, activity_type: str, now: datetime) -> ApprovalDecision:
        return ApprovalDecision(required=False, reason="Approval not configured")
