"""Voice Activity Workflow

Durable processing of one farmhand voice report:
EXTRACT (LLM queue) -> INGEST (default queue)

The workflow ID doubles as the submission ID when the caller supplies none,
so a retried or re-delivered start never logs the same report twice.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from activities.ingest import (
        extract_activity_candidates,
        ingest_activity_candidates,
        ExtractCandidatesInput,
        IngestCandidatesInput,
    )
    from core.config import TASK_QUEUE_DEFAULT, TASK_QUEUE_LLM


# Domain errors never self-heal; only upstream timeouts are retried
NON_RETRYABLE_ERRORS = [
    "InputValidationError",
    "AmbiguousReferenceError",
    "InventoryAbsenceError",
    "TemporalPolicyError",
    "AuthorizationError",
    "DistributionError",
    "IntegrityError",
]


def activity_failure_response(cause: Optional[BaseException], submission_id: str) -> Dict[str, Any]:
    """Response for an activity that failed for good.

    Only causes outside NON_RETRYABLE_ERRORS are reported as retryable.
    """
    error_type = cause.type if isinstance(cause, ApplicationError) else None
    if error_type in NON_RETRYABLE_ERRORS:
        code = "ACTIVITY_FAILED"
        message = (
            "Hindi naitala ang ulat. Makipag-ugnayan sa farm manager. / "
            "The report could not be recorded. Please contact the farm manager."
        )
        retryable = False
    else:
        code = "UPSTREAM_TIMEOUT"
        message = (
            "Hindi makausap ang serbisyo. Subukan ulit mamaya. / "
            "An upstream service did not respond. Please try again later."
        )
        retryable = True
    return {
        "outcome": "rejected",
        "code": code,
        "message": message,
        "options": [],
        "retryable": retryable,
        "activities": [],
        "submission_id": submission_id,
    }


@dataclass
class VoiceActivityInput:
    """Input for Voice Activity Workflow.

    Attributes:
        farm_id: Farm the report belongs to
        actor_id: Verified user ID of the farmhand
        transcription: Speech-to-text output
        animal_id: Animal selected in the app, if any
        submission_id: Idempotency key (defaults to the workflow ID)
    """
    farm_id: str
    actor_id: str
    transcription: str
    animal_id: Optional[str] = None
    submission_id: Optional[str] = None


@workflow.defn
class VoiceActivityWorkflow:
    """Extracts candidates from a transcription and ingests them."""

    def __init__(self):
        self.stage = "PENDING"

    @workflow.query
    def current_stage(self) -> str:
        return self.stage

    @workflow.run
    async def run(self, input: VoiceActivityInput) -> Dict[str, Any]:
        """Execute the voice activity workflow.

        Returns:
            Serialized IngestionResponse
        """
        submission_id = input.submission_id or workflow.info().workflow_id
        workflow.logger.info(f"Starting voice activity workflow for farm {input.farm_id}")

        llm_activity_options = {
            "start_to_close_timeout": timedelta(minutes=2),
            "retry_policy": RetryPolicy(
                maximum_attempts=4,
                initial_interval=timedelta(seconds=2),
                maximum_interval=timedelta(seconds=30),
                backoff_coefficient=2.0,
                non_retryable_error_types=NON_RETRYABLE_ERRORS,
            ),
            "task_queue": TASK_QUEUE_LLM,
        }
        db_activity_options = {
            "start_to_close_timeout": timedelta(seconds=60),
            "retry_policy": RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=1),
                backoff_coefficient=2.0,
                non_retryable_error_types=NON_RETRYABLE_ERRORS,
            ),
            "task_queue": TASK_QUEUE_DEFAULT,
        }

        try:
            self.stage = "EXTRACT"
            extracted = await workflow.execute_activity(
                extract_activity_candidates,
                ExtractCandidatesInput(
                    farm_id=input.farm_id,
                    transcription=input.transcription,
                    animal_id=input.animal_id,
                    submission_id=submission_id,
                ),
                **llm_activity_options,
            )
            if extracted.error:
                self.stage = "REJECTED"
                workflow.logger.info(f"Extraction rejected: {extracted.error.get('code')}")
                return {
                    "outcome": "rejected",
                    "code": extracted.error.get("code"),
                    "message": extracted.error.get("message", ""),
                    "options": extracted.error.get("options", []),
                    "retryable": False,
                    "activities": [],
                    "submission_id": submission_id,
                }

            self.stage = "INGEST"
            response = await workflow.execute_activity(
                ingest_activity_candidates,
                IngestCandidatesInput(
                    farm_id=input.farm_id,
                    actor_id=input.actor_id,
                    candidates=extracted.candidates,
                    animal_id=input.animal_id,
                    submission_id=submission_id,
                ),
                **db_activity_options,
            )
        except ActivityError as e:
            self.stage = "FAILED"
            workflow.logger.error(f"Voice activity workflow gave up: {e.cause or e}")
            return activity_failure_response(e.cause, submission_id)

        self.stage = str(response.get("outcome", "DONE")).upper()
        workflow.logger.info(f"Voice activity workflow finished: {response.get('outcome')}")
        return response
