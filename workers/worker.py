"""Worker for the voice activity pipeline.

Listens on Temporal task queues and executes workflows/activities.

Task queues:
- farm-default: ingestion, approval review and the auto-approval sweep (DB work)
- farm-llm: transcription extraction (language-model calls, rate-limited)

Run with --queue <name> to specify which queue to poll.
Run with --all to poll all queues (for local development).
"""

import argparse
import asyncio
import sys
from pathlib import Path

from temporalio.worker import Worker

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from temporal_client import get_temporal_client
from core.config import TASK_QUEUE_DEFAULT, TASK_QUEUE_LLM, get_settings
from core.observability.logging import get_logger
from storage.farm_store import SQLiteFarmStore
from workflows.voice_activity_workflow import VoiceActivityWorkflow
from workflows.auto_approval_workflow import AutoApprovalSweepWorkflow
from activities.ingest import extract_activity_candidates, ingest_activity_candidates
from activities.approvals import review_pending_activity, auto_approve_due_activities


logger = get_logger(__name__)

# =============================================================================
# Activity Groupings by Task Queue
# =============================================================================

# Default queue: DB-bound ingestion and review (fast, low-resource)
DEFAULT_QUEUE_ACTIVITIES = [
    ingest_activity_candidates,
    review_pending_activity,
    auto_approve_due_activities,
]

# LLM queue: extraction (slow, rate-limited)
LLM_QUEUE_ACTIVITIES = [
    extract_activity_candidates,
]

WORKFLOWS = [VoiceActivityWorkflow, AutoApprovalSweepWorkflow]

QUEUES = {
    TASK_QUEUE_DEFAULT: (WORKFLOWS, DEFAULT_QUEUE_ACTIVITIES),
    TASK_QUEUE_LLM: ([], LLM_QUEUE_ACTIVITIES),
}


async def run_worker(queue: str = TASK_QUEUE_DEFAULT, all_queues: bool = False):
    """Start worker listening on task queue(s).

    Args:
        queue: Specific queue to poll (farm-default, farm-llm)
        all_queues: If True, poll every queue from this process (local dev mode)
    """
    settings = get_settings()
    SQLiteFarmStore(settings.db_path, settings.db_timeout_seconds).init_schema()

    client = await get_temporal_client()
    logger.info(f"Connected to Temporal: {client.namespace}")

    queues = list(QUEUES) if all_queues else [queue]
    workers = []
    for task_queue in queues:
        workflows, activities = QUEUES[task_queue]
        workers.append(Worker(
            client,
            task_queue=task_queue,
            workflows=workflows,
            activities=activities,
        ))
        logger.info(
            f"Worker created for queue '{task_queue}': "
            f"{len(workflows)} workflow(s), {len(activities)} activities"
        )

    logger.info("Worker(s) running... (Ctrl+C to stop)")
    try:
        await asyncio.gather(*[w.run() for w in workers])
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")


def main():
    """Entry point for worker with CLI args."""
    parser = argparse.ArgumentParser(description="Farm Activity Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        choices=list(QUEUES),
        default=TASK_QUEUE_DEFAULT,
        help=f"Task queue to poll (default: {TASK_QUEUE_DEFAULT})"
    )
    parser.add_argument(
        "--all", "-a",
        action="store_true",
        dest="all_queues",
        help="Poll all queues (local development mode)"
    )

    args = parser.parse_args()
    asyncio.run(run_worker(queue=args.queue, all_queues=args.all_queues))


if __name__ == "__main__":
    main()
