"""Activity validation.

Candidates from the extraction model are parsed and checked against the
schema for their kind before any resolution runs. A failure aborts the
candidate with a bilingual reason; nothing is corrected automatically.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from core.errors import InputValidationError
from models.activity import ActivityCandidate, ActivityKind, FeedUnit
from validation.schemas import SCHEMAS, ActivitySchema


class ValidatedCandidate(BaseModel):
    """A candidate that passed validation for its kind."""
    kind: ActivityKind
    candidate: ActivityCandidate
    unit: Optional[FeedUnit] = None


def _format_issues(exc: ValidationError) -> List[str]:
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "candidate"
        issues.append(f"{location}: {error['msg']}")
    return issues


def parse_candidate(raw: Any) -> ActivityCandidate:
    """Coerce one untrusted oracle structure into an ActivityCandidate."""
    if isinstance(raw, ActivityCandidate):
        return raw
    if not isinstance(raw, dict):
        raise InputValidationError(
            [f"expected an object, got {type(raw).__name__}"],
            code="MALFORMED_CANDIDATE",
        )
    try:
        return ActivityCandidate.model_validate(raw)
    except ValidationError as e:
        raise InputValidationError(_format_issues(e), code="MALFORMED_CANDIDATE")


def parse_activity_kind(value: Optional[str]) -> ActivityKind:
    normalized = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return ActivityKind(normalized)
    except ValueError:
        raise InputValidationError(
            [f"activity_type: unknown activity type '{value}'"],
            code="UNKNOWN_ACTIVITY_TYPE",
        )


def validate_candidate(candidate: ActivityCandidate) -> ValidatedCandidate:
    """Apply the rules for the candidate's activity kind.

    Raises:
        InputValidationError: With one issue per failed rule
    """
    kind = parse_activity_kind(candidate.activity_type)
    schema = SCHEMAS[kind]

    data: Dict[str, Any] = candidate.model_dump(exclude_none=True)
    try:
        checked: ActivitySchema = schema.model_validate(data)
    except ValidationError as e:
        raise InputValidationError(_format_issues(e))

    unit = getattr(checked, "unit", None)
    updates: Dict[str, Any] = {"activity_type": kind.value}
    if kind == ActivityKind.FEEDING:
        updates["feed_type"] = checked.feed_type
        updates["unit"] = unit.value if unit else None

    return ValidatedCandidate(
        kind=kind,
        candidate=candidate.model_copy(update=updates),
        unit=unit,
    )
