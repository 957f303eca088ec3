"""Approval Module.

Decides whether farmhand activities need manager review, queues them, and
applies approve / reject / auto-approve decisions.
"""

from approval.gate import TRANSITIONS, ApprovalGate, can_transition, transition
from approval.policy import (
    DEFAULT_AUTO_APPROVE_HOURS,
    ApprovalDecision,
    ApprovalPolicy,
    FarmSettingsApprovalPolicy,
    NoApprovalPolicy,
)
from approval.reviewer import ApprovalReviewer

__all__ = [
    "TRANSITIONS",
    "ApprovalGate",
    "can_transition",
    "transition",
    "DEFAULT_AUTO_APPROVE_HOURS",
    "ApprovalDecision",
    "ApprovalPolicy",
    "FarmSettingsApprovalPolicy",
    "NoApprovalPolicy",
    "ApprovalReviewer",
]
