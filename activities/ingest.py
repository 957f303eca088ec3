"""Ingestion activities for the voice activity pipeline.

Temporal activities wrapping the extraction oracle and the ingestion
orchestrator. Extraction runs on the LLM queue; everything touching the
farm database runs on the default queue.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from temporalio import activity
from temporalio.exceptions import ApplicationError

from core.audit.events import AuditLogger, SQLiteAuditBackend
from core.config import get_settings
from core.errors import IngestionError
from core.observability.logging import get_logger, log_activity_error, with_correlation
from extraction.oracle import ExtractionOracle, OpenAIExtractionOracle
from ingestion.orchestrator import ActivityIngestionOrchestrator, IngestionRequest
from storage.farm_store import SQLiteFarmStore


logger = get_logger(__name__)

# Database path - overridable for tests
DB_PATH = get_settings().db_path

_oracle: Optional[ExtractionOracle] = None


def get_oracle() -> ExtractionOracle:
    global _oracle
    if _oracle is None:
        _oracle = OpenAIExtractionOracle()
    return _oracle


def _store() -> SQLiteFarmStore:
    store = SQLiteFarmStore(DB_PATH, timeout_seconds=get_settings().db_timeout_seconds)
    store.init_schema()
    return store


def _audit() -> AuditLogger:
    audit = AuditLogger()
    audit.add_backend(SQLiteAuditBackend(DB_PATH))
    return audit


@dataclass
class ExtractCandidatesInput:
    """Input for extract_activity_candidates activity.

    Attributes:
        farm_id: Farm the transcription belongs to
        transcription: Spoken report text
        animal_id: Animal selected by the farmhand, if any
        submission_id: Idempotency key of the submission
    """
    farm_id: str
    transcription: str
    animal_id: Optional[str] = None
    submission_id: Optional[str] = None


@dataclass
class ExtractCandidatesOutput:
    """Output from extract_activity_candidates activity.

    Attributes:
        candidates: Raw candidate dicts from the oracle
        error: Serialized IngestionError when extraction failed for good
    """
    candidates: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None


@dataclass
class IngestCandidatesInput:
    """Input for ingest_activity_candidates activity."""
    farm_id: str
    actor_id: str
    candidates: List[Dict[str, Any]]
    animal_id: Optional[str] = None
    submission_id: Optional[str] = None


@activity.defn
async def extract_activity_candidates(input: ExtractCandidatesInput) -> ExtractCandidatesOutput:
    """Run the extraction oracle over one transcription.

    Upstream timeouts are raised as retryable ApplicationErrors so Temporal
    retries them; other extraction failures are returned in `error`.
    """
    info = activity.info()
    with with_correlation(
        farm_id=input.farm_id,
        submission_id=input.submission_id,
        workflow_id=info.workflow_id,
        activity_name=info.activity_type,
    ):
        animal = None
        if input.animal_id:
            animal = _store().get_animal(input.farm_id, input.animal_id)

        try:
            candidates = await get_oracle().extract(input.transcription, animal)
        except IngestionError as e:
            if e.retryable:
                log_activity_error(info.activity_type, e.code, attempt=info.attempt)
                raise ApplicationError(e.message, type=type(e).__name__) from e
            logger.info(f"Extraction failed: {e.code}")
            return ExtractCandidatesOutput(error=e.to_dict())

        logger.info(f"Extracted {len(candidates)} candidate(s) (attempt {info.attempt})")
        return ExtractCandidatesOutput(candidates=candidates)


@activity.defn
async def ingest_activity_candidates(input: IngestCandidatesInput) -> Dict[str, Any]:
    """Validate, resolve, gate and commit extracted candidates.

    Returns:
        Serialized IngestionResponse. A retryable response is raised as an
        ApplicationError instead so the activity is retried.
    """
    info = activity.info()
    with with_correlation(workflow_id=info.workflow_id, activity_name=info.activity_type):
        orchestrator = ActivityIngestionOrchestrator(_store(), audit=_audit())
        response = await orchestrator.ingest(
            IngestionRequest(
                farm_id=input.farm_id,
                actor_id=input.actor_id,
                animal_id=input.animal_id,
                submission_id=input.submission_id,
            ),
            input.candidates,
        )

    if response.retryable:
        log_activity_error(info.activity_type, response.code or "UPSTREAM_TIMEOUT", attempt=info.attempt)
        raise ApplicationError(response.message, type=response.code or "UpstreamTimeoutError")
    return response.model_dump(mode="json")
