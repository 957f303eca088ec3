"""Workflow definitions module."""

from workflows.voice_activity_workflow import VoiceActivityWorkflow, VoiceActivityInput
from workflows.auto_approval_workflow import AutoApprovalSweepWorkflow, AutoApprovalSweepInput

__all__ = [
    "VoiceActivityWorkflow",
    "VoiceActivityInput",
    "AutoApprovalSweepWorkflow",
    "AutoApprovalSweepInput",
]
