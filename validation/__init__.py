"""Validation Module - per-activity structural and domain rules."""

from validation.schemas import MAX_TEXT_LENGTH, SCHEMAS, UNIT_ALIASES
from validation.validator import (
    ValidatedCandidate,
    parse_activity_kind,
    parse_candidate,
    validate_candidate,
)

__all__ = [
    "MAX_TEXT_LENGTH",
    "SCHEMAS",
    "UNIT_ALIASES",
    "ValidatedCandidate",
    "parse_activity_kind",
    "parse_candidate",
    "validate_candidate",
]
