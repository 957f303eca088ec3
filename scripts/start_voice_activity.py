"""Start a VoiceActivityWorkflow from the command line.

Example:
    python scripts/start_voice_activity.py --farm demo-farm --user hand-1 \
        "pinakain ko ng 5 sako ng hay kahapon"
"""

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from temporal_client import get_temporal_client
from core.config import TASK_QUEUE_DEFAULT
from core.observability.logging import get_logger
from workflows.voice_activity_workflow import VoiceActivityWorkflow, VoiceActivityInput


logger = get_logger(__name__)


async def start_voice_activity(
    farm_id: str,
    actor_id: str,
    transcription: str,
    animal_id: str = None,
) -> dict:
    """Start the workflow and wait for its IngestionResponse."""
    workflow_id = f"voice-{uuid.uuid4().hex[:12]}"

    client = await get_temporal_client()
    logger.info(f"Connected to Temporal: {client.namespace}")

    handle = await client.start_workflow(
        VoiceActivityWorkflow.run,
        VoiceActivityInput(
            farm_id=farm_id,
            actor_id=actor_id,
            transcription=transcription,
            animal_id=animal_id,
        ),
        id=workflow_id,
        task_queue=TASK_QUEUE_DEFAULT,
    )
    logger.info(f"Workflow started: {handle.id}")

    result = await handle.result()
    logger.info(f"Workflow finished: {result.get('outcome')}")
    return result


def main():
    parser = argparse.ArgumentParser(description="Submit a voice activity report")
    parser.add_argument("transcription", help="Transcribed report text")
    parser.add_argument("--farm", required=True, help="Farm ID")
    parser.add_argument("--user", required=True, help="Submitting user ID")
    parser.add_argument("--animal", default=None, help="Selected animal ID")
    args = parser.parse_args()

    result = asyncio.run(start_voice_activity(args.farm, args.user, args.transcription, args.animal))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
