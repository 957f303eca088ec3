"""Activity Ingestion Orchestrator.

Sequences one voice submission through the pipeline:

EXTRACT -> PARSE/DATE/VALIDATE (every candidate) -> RESOLVE_ANIMAL ->
RESOLVE_FEED (concurrent) -> DISTRIBUTE (bulk feeding) -> AUTHORIZE ->
APPROVAL_GATE -> COMMIT

Any domain error aborts the whole submission before the commit stage, so a
submission is either fully committed/queued or leaves no trace. Errors are
returned as structured responses, never raised to the caller.
"""

import asyncio
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ValidationError

from animal_resolver import AnimalResolver
from approval.gate import ApprovalGate
from approval.policy import ApprovalPolicy, FarmSettingsApprovalPolicy
from core.audit.events import AuditEventType, AuditLogger
from core.config import Settings, get_settings
from core.errors import (
    AmbiguousReferenceError,
    AuthorizationError,
    IngestionError,
    InputValidationError,
    InventoryAbsenceError,
    TemporalPolicyError,
    UpstreamTimeoutError,
)
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import get_metrics
from date_resolver import ResolvedDate, resolve_date_reference
from distribution.engine import distribute_feed
from extraction.oracle import ExtractionOracle
from feed_resolver import FeedResolution, InventoryResolver
from models.activity import (
    ANIMAL_REQUIRED_KINDS,
    ActivityKind,
    Animal,
    DistributionPlan,
    PendingApproval,
    ResolvedActivity,
)
from models.responses import ActivityOutcome, IngestionOutcome, IngestionResponse
from storage.base import DomainRecord, FarmDataStore
from storage.records import build_records
from validation import ValidatedCandidate, parse_candidate, validate_candidate


logger = get_logger(__name__)

CLARIFICATION_ERRORS = (AmbiguousReferenceError, InventoryAbsenceError)


class IngestionRequest(BaseModel):
    """One voice submission.

    Attributes:
        farm_id: Farm the actor is submitting for
        actor_id: Verified user ID from the authentication layer
        transcription: Spoken report (required for process_transcription)
        animal_id: Animal already selected by the caller, if any
        submission_id: Idempotency key; resubmitting returns the first result
    """
    farm_id: str
    actor_id: str
    transcription: Optional[str] = None
    animal_id: Optional[str] = None
    submission_id: Optional[str] = None


@dataclass
class _WorkItem:
    """Pipeline state for one candidate."""
    validated: ValidatedCandidate
    date: ResolvedDate
    animal_id: Optional[str] = None
    feed: Optional[FeedResolution] = None
    plan: Optional[DistributionPlan] = None

    @property
    def kind(self) -> ActivityKind:
        return self.validated.kind

    @property
    def is_bulk_feeding(self) -> bool:
        return self.kind == ActivityKind.FEEDING and self.animal_id is None


def no_animal_access_error() -> AuthorizationError:
    return AuthorizationError(
        "Hindi kayo may access sa animal na ito.",
        "You do not have access to this animal.",
        code="ANIMAL_NOT_IN_FARM",
    )


def needs_animal_selection_error(kind: ActivityKind, options: Sequence[str] = ()) -> AmbiguousReferenceError:
    return AmbiguousReferenceError(
        f"Aling hayop ang tinutukoy ninyo para sa {kind.value}? Pumili ng hayop.",
        f"Which animal is this {kind.value} for? Please select an animal.",
        code="NEEDS_ANIMAL_SELECTION",
        options=list(options),
    )


class ActivityIngestionOrchestrator:
    """Top-level ingestion pipeline.

    Example:
        orchestrator = ActivityIngestionOrchestrator(store, oracle=OpenAIExtractionOracle())
        response = await orchestrator.process_transcription(IngestionRequest(
            farm_id="farm-1", actor_id="user-7", transcription="fed 5 bags of hay",
        ))
    """

    def __init__(
        self,
        store: FarmDataStore,
        oracle: Optional[ExtractionOracle] = None,
        policy: Optional[ApprovalPolicy] = None,
        animal_resolver: Optional[AnimalResolver] = None,
        audit: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.settings = settings or get_settings()
        self.gate = ApprovalGate(policy or FarmSettingsApprovalPolicy(store))
        self.animal_resolver = animal_resolver or AnimalResolver()
        self.inventory = InventoryResolver(store, timeout_seconds=self.settings.db_timeout_seconds)
        self.audit = audit or AuditLogger()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # =========================================================================
    # Entry points
    # =========================================================================

    async def process_transcription(self, request: IngestionRequest) -> IngestionResponse:
        """Extract candidates from the transcription, then ingest them."""
        if self.oracle is None:
            raise RuntimeError("No extraction oracle configured")
        return await self._run(request, None)

    async def ingest(self, request: IngestionRequest, raw_candidates: List[Any]) -> IngestionResponse:
        """Ingest candidates that were already extracted."""
        return await self._run(request, raw_candidates)

    async def _run(self, request: IngestionRequest, raw_candidates: Optional[List[Any]]) -> IngestionResponse:
        started = time.perf_counter()
        with with_correlation(
            farm_id=request.farm_id,
            actor_id=request.actor_id,
            submission_id=request.submission_id,
        ):
            try:
                replay = await self._load_replay(request)
                if replay is not None:
                    return replay
                response = await self._pipeline(request, raw_candidates)
            except IngestionError as e:
                response = self._error_response(e, request)
                log = logger.warning if e.retryable else logger.info
                log(f"Submission ended with {response.outcome.value}: {e.code}")

            self._record_outcome(request, response, started)
            return response

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _pipeline(self, request: IngestionRequest, raw_candidates: Optional[List[Any]]) -> IngestionResponse:
        self.audit.log_info(
            AuditEventType.SUBMISSION_RECEIVED,
            "Voice submission received" if raw_candidates is None else f"{len(raw_candidates)} candidate(s) received",
            farm_id=request.farm_id,
            submission_id=request.submission_id,
            actor=request.actor_id,
        )

        role = await self._read(self.store.get_member_role, request.farm_id, request.actor_id)
        if role is None:
            raise AuthorizationError(
                "Hindi kayo miyembro ng farm na ito.",
                "You are not a member of this farm.",
                code="NOT_FARM_MEMBER",
            )

        context_animal = None
        if request.animal_id:
            context_animal = await self._read(self.store.get_animal, request.farm_id, request.animal_id)
            if context_animal is None:
                raise no_animal_access_error()

        if raw_candidates is None:
            raw_candidates = await self._extract(request, context_animal)

        if not raw_candidates:
            raise InputValidationError(
                ["no activity could be extracted from the transcription"],
                code="NO_ACTIVITY_EXTRACTED",
            )

        now = self.clock()
        max_backdate = await self._read(self.store.get_max_backdate_days, request.farm_id)
        if max_backdate is None:
            max_backdate = self.settings.default_max_backdate_days

        with self._stage("validate"):
            items = [self._prepare(raw, max_backdate, now) for raw in raw_candidates]

        roster = await self._read(self.store.list_animals, request.farm_id)

        with self._stage("resolve_animal"):
            for item in items:
                item.animal_id = self._resolve_animal(item, roster, context_animal)

        with self._stage("resolve_feed"):
            await self._resolve_feeds(request.farm_id, items)

        with self._stage("distribute"):
            for item in items:
                if item.is_bulk_feeding:
                    item.plan = distribute_feed(
                        item.feed.feed_type,
                        item.feed.kilograms,
                        roster,
                        quantity=item.feed.quantity,
                        unit=item.feed.unit,
                        weight_per_unit=item.feed.weight_per_unit,
                        record_date=item.date.record_date,
                    )

        activities = [self._to_resolved(item) for item in items]

        with self._stage("authorize"):
            await self._check_animals(request.farm_id, activities)

        return await self._gate_and_commit(request, activities, now)

    async def _extract(self, request: IngestionRequest, context_animal: Optional[Animal]) -> List[Any]:
        if self.oracle is None:
            raise RuntimeError("No extraction oracle configured")
        if not request.transcription or not request.transcription.strip():
            raise InputValidationError(["transcription is empty"], code="EMPTY_TRANSCRIPTION")

        with self._stage("extract"):
            try:
                candidates = await self.oracle.extract(request.transcription, context_animal)
            except IngestionError as e:
                self.audit.log_error(
                    AuditEventType.EXTRACTION_FAILED,
                    f"Extraction failed: {e.code}",
                    farm_id=request.farm_id,
                    submission_id=request.submission_id,
                    actor=request.actor_id,
                )
                raise

        self.audit.log_info(
            AuditEventType.EXTRACTION_COMPLETED,
            f"Extracted {len(candidates)} candidate(s)",
            farm_id=request.farm_id,
            submission_id=request.submission_id,
            actor=request.actor_id,
            details={"transcription": request.transcription, "candidates": candidates},
        )
        return list(candidates)

    def _prepare(self, raw: Any, max_backdate_days: int, now: datetime) -> _WorkItem:
        """Parse, date and validate one candidate. Raises on the first failure."""
        candidate = parse_candidate(raw)
        resolved_date = resolve_date_reference(candidate.date_reference, max_backdate_days, now)
        validated = validate_candidate(candidate)
        return _WorkItem(validated=validated, date=resolved_date)

    def _resolve_animal(
        self,
        item: _WorkItem,
        roster: List[Animal],
        context_animal: Optional[Animal],
    ) -> Optional[str]:
        """Animal the activity is logged against, or None for herd-wide / unbound kinds.

        The caller's selected animal always wins. An unresolved feeding falls
        through to the bulk path.
        """
        if context_animal is not None:
            return context_animal.id

        identifier = item.validated.candidate.animal_identifier
        kind = item.kind
        options: List[str] = []

        if identifier:
            resolution = self.animal_resolver.resolve(identifier, roster)
            if resolution.is_matched:
                return resolution.animal_id
            logger.info(f"Animal '{identifier}' not resolved: {'; '.join(resolution.reasons)}")
            options = [c.label for c in resolution.candidates]

        if kind in ANIMAL_REQUIRED_KINDS:
            raise needs_animal_selection_error(kind, options)
        return None

    async def _resolve_feeds(self, farm_id: str, items: List[_WorkItem]) -> None:
        feeding = [item for item in items if item.kind == ActivityKind.FEEDING]
        if not feeding:
            return
        results = await asyncio.gather(*[
            self.inventory.resolve(
                farm_id,
                item.validated.candidate.feed_type,
                item.validated.unit,
                item.validated.candidate.quantity,
            )
            for item in feeding
        ])
        for item, feed in zip(feeding, results):
            item.feed = feed

    def _to_resolved(self, item: _WorkItem) -> ResolvedActivity:
        candidate = item.validated.candidate
        data: Dict[str, Any] = {
            "activity_type": item.kind,
            "animal_id": item.animal_id,
            "record_date": item.date.record_date,
            "record_datetime": item.date.record_datetime,
            "quantity": candidate.quantity,
            "unit": candidate.unit,
            "medicine_name": candidate.medicine_name,
            "dosage": candidate.dosage,
            "notes": candidate.notes,
            "livestock_type": candidate.livestock_type,
            "date_reference": candidate.date_reference,
        }
        if item.feed is not None:
            data.update(
                feed_type=item.feed.feed_type,
                unit=item.feed.unit,
                kilograms=item.feed.kilograms,
                weight_per_unit=item.feed.weight_per_unit,
                feed_match_strategy=item.feed.strategy,
                distribution=item.plan,
            )
        try:
            return ResolvedActivity(**data)
        except ValidationError as e:
            raise InputValidationError([err["msg"] for err in e.errors()], code="UNRESOLVED_FIELDS")

    async def _check_animals(self, farm_id: str, activities: List[ResolvedActivity]) -> None:
        """Single-animal activities must target a farm animal that existed on the record date."""
        for activity in activities:
            if activity.animal_id is None:
                continue
            animal = await self._read(self.store.get_animal, farm_id, activity.animal_id)
            if animal is None:
                raise no_animal_access_error()
            if animal.farm_entry_date and activity.record_date < animal.farm_entry_date:
                raise TemporalPolicyError(
                    f"Hindi pwedeng mag-record bago dumating si {animal.label} sa farm "
                    f"({animal.farm_entry_date.isoformat()}).",
                    f"Cannot record activities for {animal.label} before its farm entry date "
                    f"({animal.farm_entry_date.isoformat()}).",
                    code="DATE_BEFORE_FARM_ENTRY",
                )

    async def _gate_and_commit(
        self,
        request: IngestionRequest,
        activities: List[ResolvedActivity],
        now: datetime,
    ) -> IngestionResponse:
        records: List[DomainRecord] = []
        pending: List[PendingApproval] = []
        outcomes: List[ActivityOutcome] = []

        with self._stage("approval_gate"):
            for activity in activities:
                decision = await self._read(
                    self.gate.evaluate, request.farm_id, request.actor_id, activity, now
                )
                outcome = ActivityOutcome(
                    activity_type=activity.activity_type.value,
                    status="committed",
                    animal_id=activity.animal_id,
                    record_date=activity.record_date.isoformat(),
                    feed_type=activity.feed_type,
                    kilograms=activity.kilograms,
                    feed_match_strategy=activity.feed_match_strategy,
                    distribution=activity.distribution,
                )
                if decision.required:
                    item = self.gate.build_pending(
                        activity, request.farm_id, request.actor_id, decision, now, request.submission_id
                    )
                    pending.append(item)
                    outcome.status = "queued"
                    outcome.pending_id = item.id
                    outcome.auto_approve_at = item.auto_approve_at
                else:
                    built = build_records(activity, request.farm_id, request.actor_id, request.submission_id)
                    records.extend(built)
                    outcome.record_count = len(built)
                outcomes.append(outcome)

        response = self._success_response(request, outcomes)

        with self._stage("commit"):
            committed = await asyncio.to_thread(
                self.store.commit_submission,
                request.farm_id,
                request.actor_id,
                request.submission_id,
                records,
                pending,
                response.model_dump(mode="json"),
            )
        if not committed:
            # A concurrent request with the same submission_id won
            replay = await self._load_replay(request)
            if replay is not None:
                return replay

        get_metrics().record_queued(len(pending))
        logger.info(
            f"Submission {response.outcome.value}: {len(records)} record(s), {len(pending)} queued",
        )
        return response

    # =========================================================================
    # Responses
    # =========================================================================

    def _success_response(self, request: IngestionRequest, outcomes: List[ActivityOutcome]) -> IngestionResponse:
        kinds = ", ".join(dict.fromkeys(o.activity_type for o in outcomes))
        queued = [o for o in outcomes if o.status == "queued"]

        if queued:
            deadlines = [o.auto_approve_at for o in queued if o.auto_approve_at]
            deadline = min(deadlines) if deadlines else None
            deadline_text = f" (auto-approve: {deadline.isoformat()})" if deadline else ""
            return IngestionResponse(
                outcome=IngestionOutcome.QUEUED,
                message=(
                    f"Naipadala ang {kinds} para sa approval ng manager{deadline_text}. / "
                    f"{kinds} submitted for manager approval{deadline_text}."
                ),
                activities=outcomes,
                submission_id=request.submission_id,
            )

        return IngestionResponse(
            outcome=IngestionOutcome.COMMITTED,
            message=f"Naitala ang {kinds}. / Recorded {kinds}.",
            activities=outcomes,
            submission_id=request.submission_id,
        )

    def _error_response(self, error: IngestionError, request: IngestionRequest) -> IngestionResponse:
        outcome = (
            IngestionOutcome.NEEDS_CLARIFICATION
            if isinstance(error, CLARIFICATION_ERRORS)
            else IngestionOutcome.REJECTED
        )
        return IngestionResponse(
            outcome=outcome,
            code=error.code,
            message=error.message,
            options=error.options,
            retryable=error.retryable,
            submission_id=request.submission_id,
        )

    async def _load_replay(self, request: IngestionRequest) -> Optional[IngestionResponse]:
        if not request.submission_id:
            return None
        stored = await self._read(self.store.get_submission_response, request.farm_id, request.submission_id)
        if stored is None:
            return None
        logger.info("Duplicate submission, returning stored result")
        self.audit.log_info(
            AuditEventType.SUBMISSION_REPLAYED,
            "Duplicate submission replayed",
            farm_id=request.farm_id,
            submission_id=request.submission_id,
            actor=request.actor_id,
        )
        return IngestionResponse.model_validate(stored)

    def _record_outcome(self, request: IngestionRequest, response: IngestionResponse, started: float) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        metrics = get_metrics()
        metrics.record_submission(
            response.outcome.value,
            error_code=response.code,
            activity_types=[a.activity_type for a in response.activities],
        )
        metrics.record_processing_time("ingest", duration_ms)

        event_type = {
            IngestionOutcome.COMMITTED: AuditEventType.SUBMISSION_COMMITTED,
            IngestionOutcome.QUEUED: AuditEventType.SUBMISSION_QUEUED,
            IngestionOutcome.NEEDS_CLARIFICATION: AuditEventType.SUBMISSION_NEEDS_CLARIFICATION,
            IngestionOutcome.REJECTED: AuditEventType.SUBMISSION_REJECTED,
        }[response.outcome]
        self.audit.log_info(
            event_type,
            response.message,
            farm_id=request.farm_id,
            submission_id=request.submission_id,
            actor=request.actor_id,
            details={
                "code": response.code,
                "options": response.options,
                "activities": [a.model_dump(mode="json", exclude={"distribution"}) for a in response.activities],
                "duration_ms": round(duration_ms, 1),
            },
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _read(self, fn: Callable, *args):
        """Run a blocking store read in a worker thread, bounded by the DB timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args),
                timeout=self.settings.db_timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise UpstreamTimeoutError("data store")

    @contextmanager
    def _stage(self, stage: str):
        started = time.perf_counter()
        with with_correlation(stage=stage):
            yield
        get_metrics().record_processing_time(stage, (time.perf_counter() - started) * 1000)


def new_submission_id() -> str:
    return str(uuid.uuid4())
