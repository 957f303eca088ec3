"""Auto-approval sweep workflow.

Meant to be run from a Temporal schedule (e.g. hourly); each run approves
every pending activity whose deadline has passed.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from activities.approvals import auto_approve_due_activities, AutoApproveInput
    from core.config import TASK_QUEUE_DEFAULT


@dataclass
class AutoApprovalSweepInput:
    """Input for AutoApprovalSweepWorkflow.

    Attributes:
        as_of: ISO-8601 instant to evaluate deadlines at; defaults to workflow time
    """
    as_of: Optional[str] = None


@workflow.defn
class AutoApprovalSweepWorkflow:

    @workflow.run
    async def run(self, input: AutoApprovalSweepInput) -> Dict[str, Any]:
        as_of = input.as_of or workflow.now().isoformat()
        result = await workflow.execute_activity(
            auto_approve_due_activities,
            AutoApproveInput(as_of=as_of),
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=5),
                backoff_coefficient=2.0,
            ),
            task_queue=TASK_QUEUE_DEFAULT,
        )
        workflow.logger.info(f"Auto-approval sweep approved {result['approved']} pending activities")
        return result
