"""Temporal reference resolution.

Turns an optional natural-language date reference into a calendar date and
timestamp:
1. No reference resolves to now
2. Future phrasing is always rejected
3. Past phrasing (fixed phrases, "N days ago", "last <weekday>") shifts the date
4. Present or unrecognized phrasing resolves to now
5. Anything older than the farm's backdating window is rejected
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, Pattern, Tuple

from pydantic import BaseModel

from core.errors import TemporalPolicyError
from date_resolver.phrases import (
    FUTURE_PATTERNS,
    FUTURE_PHRASES,
    FUTURE_WEEKDAY_PATTERN,
    PAST_OFFSETS,
    PAST_PATTERNS,
    PRESENT_PHRASES,
    WEEKDAY_PATTERN,
    WEEKDAYS,
    longest_first,
    phrase_pattern,
)


DEFAULT_MAX_BACKDATE_DAYS = 7


class DateClassification(str, Enum):
    """How a reference was interpreted."""
    NONE = "none"
    PRESENT = "present"
    PAST = "past"
    FUTURE = "future"
    UNRECOGNIZED = "unrecognized"


class ResolvedDate(BaseModel):
    """A resolved record date."""
    record_date: date
    record_datetime: datetime
    days_ago: int
    classification: DateClassification
    matched_phrase: Optional[str] = None


_FUTURE: List[Tuple[str, Pattern]] = [
    (p, phrase_pattern(p)) for p in longest_first(FUTURE_PHRASES)
]
_PAST: List[Tuple[str, Pattern, int]] = [
    (p, phrase_pattern(p), PAST_OFFSETS[p]) for p in longest_first(PAST_OFFSETS)
]
_PRESENT: List[Tuple[str, Pattern]] = [
    (p, phrase_pattern(p)) for p in longest_first(PRESENT_PHRASES)
]


def future_date_error() -> TemporalPolicyError:
    return TemporalPolicyError(
        "Hindi pwedeng mag-record ng activities sa hinaharap. Mag-record lang ng mga "
        "activities na tapos na o nangyayari ngayon.",
        "Cannot record activities for future dates. Please only record activities "
        "that have already happened or are happening now.",
        code="FUTURE_DATE",
    )


def date_too_old_error(max_backdate_days: int) -> TemporalPolicyError:
    return TemporalPolicyError(
        f"Hindi pwedeng mag-record ng activities na mas luma sa {max_backdate_days} araw. "
        "Makipag-ugnayan sa farm manager para sa lumang records.",
        f"Cannot record activities older than {max_backdate_days} days. "
        "Please contact your farm manager for historical records.",
        code="DATE_TOO_OLD",
    )


def classify_reference(reference: str, today: date) -> Tuple[DateClassification, int, Optional[str]]:
    """Classify a lower-cased reference.

    Returns:
        (classification, days_ago, matched_phrase)
    """
    for phrase, pattern in _FUTURE:
        if pattern.search(reference):
            return DateClassification.FUTURE, 0, phrase
    for pattern in FUTURE_PATTERNS:
        match = pattern.search(reference)
        if match:
            return DateClassification.FUTURE, 0, match.group(0)
    match = FUTURE_WEEKDAY_PATTERN.search(reference)
    if match:
        return DateClassification.FUTURE, 0, match.group(0)

    for phrase, pattern, offset in _PAST:
        if pattern.search(reference):
            return DateClassification.PAST, offset, phrase

    for pattern, multiplier in PAST_PATTERNS:
        match = pattern.search(reference)
        if match:
            return DateClassification.PAST, int(match.group(1)) * multiplier, match.group(0)

    match = WEEKDAY_PATTERN.search(reference)
    if match:
        target = WEEKDAYS[match.group(1)]
        # Most recent such weekday strictly before today
        days_back = (today.weekday() - target) % 7 or 7
        return DateClassification.PAST, days_back, match.group(0)

    for phrase, pattern in _PRESENT:
        if pattern.search(reference):
            return DateClassification.PRESENT, 0, phrase

    return DateClassification.UNRECOGNIZED, 0, None


def resolve_date_reference(
    reference: Optional[str],
    max_backdate_days: int = DEFAULT_MAX_BACKDATE_DAYS,
    now: Optional[datetime] = None,
) -> ResolvedDate:
    """Resolve a date reference against the current time.

    Args:
        reference: Natural-language reference ("kahapon", "3 days ago"), or None
        max_backdate_days: Farm's backdating window in days
        now: Current time (defaults to UTC now)

    Returns:
        ResolvedDate

    Raises:
        TemporalPolicyError: FUTURE_DATE or DATE_TOO_OLD
    """
    now = now or datetime.now(timezone.utc)

    if reference is None or not reference.strip():
        return ResolvedDate(
            record_date=now.date(),
            record_datetime=now,
            days_ago=0,
            classification=DateClassification.NONE,
        )

    normalized = " ".join(reference.lower().split())
    classification, days_ago, phrase = classify_reference(normalized, now.date())

    if classification == DateClassification.FUTURE:
        raise future_date_error()

    if days_ago > max_backdate_days:
        raise date_too_old_error(max_backdate_days)

    record_datetime = now - timedelta(days=days_ago)
    return ResolvedDate(
        record_date=record_datetime.date(),
        record_datetime=record_datetime,
        days_ago=days_ago,
        classification=classification,
        matched_phrase=phrase,
    )
