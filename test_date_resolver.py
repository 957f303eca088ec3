"""Tests for date reference resolution."""

from datetime import date

import pytest

from conftest import NOW
from core.errors import TemporalPolicyError
from date_resolver import DateClassification, resolve_date_reference


class TestNoReference:

    @pytest.mark.parametrize("reference", [None, "", "   "])
    def test_missing_reference_is_now(self, reference):
        resolved = resolve_date_reference(reference, now=NOW)
        assert resolved.record_date == NOW.date()
        assert resolved.record_datetime == NOW
        assert resolved.classification == DateClassification.NONE


class TestPastReferences:
    """Backward-looking phrases shift the record date."""

    @pytest.mark.parametrize("reference,expected", [
        ("yesterday", date(2026, 3, 10)),
        ("Kahapon", date(2026, 3, 10)),
        ("kagabi", date(2026, 3, 10)),
        ("gahapon", date(2026, 3, 10)),
        ("kamakalawa", date(2026, 3, 9)),
        ("3 days ago", date(2026, 3, 8)),
        ("2 araw na ang nakalipas", date(2026, 3, 9)),
        ("last week", date(2026, 3, 4)),
    ])
    def test_fixed_offsets(self, reference, expected):
        resolved = resolve_date_reference(reference, now=NOW)
        assert resolved.record_date == expected
        assert resolved.classification == DateClassification.PAST

    def test_phrase_inside_sentence(self):
        resolved = resolve_date_reference("pinakain ko sila kahapon ng hapon", now=NOW)
        assert resolved.days_ago == 1
        assert resolved.matched_phrase == "kahapon"

    def test_last_weekday_is_strictly_before_today(self):
        # NOW is a Wednesday
        assert resolve_date_reference("last monday", now=NOW).record_date == date(2026, 3, 9)
        assert resolve_date_reference("last wednesday", now=NOW).record_date == date(2026, 3, 4)
        assert resolve_date_reference("noong lunes", now=NOW).record_date == date(2026, 3, 9)

    def test_last_week_phrase_beats_weekday_name(self):
        """'linggo' alone is Sunday, but 'noong isang linggo' means last week."""
        resolved = resolve_date_reference("noong isang linggo", now=NOW)
        assert resolved.days_ago == 7

    def test_record_datetime_keeps_time_of_day(self):
        resolved = resolve_date_reference("yesterday", now=NOW)
        assert resolved.record_datetime.hour == NOW.hour
        assert resolved.record_datetime.date() == date(2026, 3, 10)


class TestFutureReferences:
    """Forward-looking phrasing is always rejected."""

    @pytest.mark.parametrize("reference", [
        "tomorrow",
        "bukas",
        "mamaya",
        "ugma",
        "in 2 days",
        "next week",
        "sa susunod na linggo",
        "next monday",
        "this coming friday",
        "sa lunes",
        "sa makalawa",
        "day after tomorrow",
    ])
    def test_future_rejected(self, reference):
        with pytest.raises(TemporalPolicyError) as exc_info:
            resolve_date_reference(reference, now=NOW)
        assert exc_info.value.code == "FUTURE_DATE"

    def test_future_wins_over_past(self):
        with pytest.raises(TemporalPolicyError) as exc_info:
            resolve_date_reference("yesterday or tomorrow", now=NOW)
        assert exc_info.value.code == "FUTURE_DATE"

    def test_future_message_is_bilingual(self):
        with pytest.raises(TemporalPolicyError) as exc_info:
            resolve_date_reference("bukas", now=NOW)
        assert "hinaharap" in exc_info.value.message
        assert "future dates" in exc_info.value.message


class TestBackdatingWindow:

    def test_too_old_rejected(self):
        with pytest.raises(TemporalPolicyError) as exc_info:
            resolve_date_reference("10 days ago", max_backdate_days=7, now=NOW)
        assert exc_info.value.code == "DATE_TOO_OLD"
        assert "7 days" in exc_info.value.message_en

    def test_window_is_inclusive(self):
        resolved = resolve_date_reference("7 days ago", max_backdate_days=7, now=NOW)
        assert resolved.days_ago == 7

    def test_farm_window_overrides_default(self):
        resolved = resolve_date_reference("2 weeks ago", max_backdate_days=30, now=NOW)
        assert resolved.record_date == date(2026, 2, 25)


class TestUnrecognized:

    @pytest.mark.parametrize("reference", ["sometime", "kanina", "today"])
    def test_falls_back_to_now(self, reference):
        resolved = resolve_date_reference(reference, now=NOW)
        assert resolved.record_date == NOW.date()
        assert resolved.days_ago == 0


def test_coming_weekday_is_not_read_as_past():
    """A weekday introduced by 'sa' points forward, by 'noong' backward."""
    with pytest.raises(TemporalPolicyError) as exc_info:
        resolve_date_reference("gagawin sa biyernes", now=NOW)
    assert exc_info.value.code == "FUTURE_DATE"
    assert resolve_date_reference("noong biyernes", now=NOW).record_date == date(2026, 3, 6)
