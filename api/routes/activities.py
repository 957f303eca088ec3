"""Activity submission endpoints.

- POST /activities/voice - transcription from the mobile app
- POST /activities/candidates - candidates already extracted elsewhere

Domain outcomes (committed, queued, needs_clarification, rejected) are
returned with HTTP 200; the `outcome` field tells the client what to do next.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_actor, get_candidate_ingestor, get_member_role, get_orchestrator
from ingestion.orchestrator import ActivityIngestionOrchestrator, IngestionRequest
from models.activity import ActorIdentity
from models.responses import IngestionResponse


router = APIRouter()


class VoiceSubmission(BaseModel):
    """Transcribed voice report."""
    transcription: str = Field(..., min_length=1, max_length=2000)
    animal_id: Optional[str] = Field(None, description="Animal selected in the app")
    submission_id: Optional[str] = Field(None, description="Client idempotency key")


class CandidateSubmission(BaseModel):
    """Pre-extracted activity candidates."""
    candidates: List[Dict[str, Any]]
    animal_id: Optional[str] = None
    submission_id: Optional[str] = None


@router.post("/voice", response_model=IngestionResponse, dependencies=[Depends(get_member_role)])
async def submit_voice(
    body: VoiceSubmission,
    actor: ActorIdentity = Depends(get_actor),
    orchestrator: ActivityIngestionOrchestrator = Depends(get_orchestrator),
) -> IngestionResponse:
    """Extract and ingest activities from a transcription."""
    return await orchestrator.process_transcription(IngestionRequest(
        farm_id=actor.farm_id,
        actor_id=actor.user_id,
        transcription=body.transcription,
        animal_id=body.animal_id,
        submission_id=body.submission_id,
    ))


@router.post("/candidates", response_model=IngestionResponse, dependencies=[Depends(get_member_role)])
async def submit_candidates(
    body: CandidateSubmission,
    actor: ActorIdentity = Depends(get_actor),
    orchestrator: ActivityIngestionOrchestrator = Depends(get_candidate_ingestor),
) -> IngestionResponse:
    """Ingest candidates without calling the extraction model."""
    return await orchestrator.ingest(
        IngestionRequest(
            farm_id=actor.farm_id,
            actor_id=actor.user_id,
            animal_id=body.animal_id,
            submission_id=body.submission_id,
        ),
        body.candidates,
    )
