"""Tests for candidate parsing and per-kind validation rules."""

import pytest

from core.errors import InputValidationError
from models.activity import ActivityCandidate, ActivityKind, FeedUnit
from validation import parse_candidate, validate_candidate
from validation.schemas import MAX_TEXT_LENGTH


def validate(**fields):
    return validate_candidate(ActivityCandidate(**fields))


class TestParseCandidate:

    def test_unknown_keys_dropped(self):
        candidate = parse_candidate({"activity_type": "milking", "quantity": 3, "confidence": 0.9})
        assert candidate.quantity == 3
        assert not hasattr(candidate, "confidence")

    def test_non_object_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_candidate(["milking", 3])
        assert exc_info.value.code == "MALFORMED_CANDIDATE"

    def test_wrong_field_type_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_candidate({"activity_type": "milking", "quantity": "a lot"})
        assert exc_info.value.code == "MALFORMED_CANDIDATE"
        assert "quantity" in exc_info.value.message_en


class TestActivityKind:

    def test_unknown_kind(self):
        with pytest.raises(InputValidationError) as exc_info:
            validate(activity_type="shearing")
        assert exc_info.value.code == "UNKNOWN_ACTIVITY_TYPE"

    def test_missing_kind(self):
        with pytest.raises(InputValidationError):
            validate(quantity=3)

    def test_kind_is_normalized(self):
        assert validate(activity_type="Health Observation", notes="limping on left leg").kind == \
            ActivityKind.HEALTH_OBSERVATION


class TestMilking:

    @pytest.mark.parametrize("quantity", [0, -1, 0.05, 150])
    def test_out_of_range(self, quantity):
        with pytest.raises(InputValidationError) as exc_info:
            validate(activity_type="milking", quantity=quantity)
        assert exc_info.value.code == "INVALID_DATA"

    def test_quantity_required(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="milking")

    def test_valid(self):
        assert validate(activity_type="milking", quantity=12.5).candidate.quantity == 12.5


class TestFeeding:

    def test_feed_type_may_be_absent(self):
        validated = validate(activity_type="feeding", quantity=5, unit="bags")
        assert validated.candidate.feed_type is None
        assert validated.unit == FeedUnit.BAGS

    def test_empty_feed_type_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            validate(activity_type="feeding", quantity=5, feed_type="")
        assert "feed type must not be empty" in exc_info.value.message_en

    def test_unknown_marker_kept(self):
        validated = validate(activity_type="feeding", quantity=5, feed_type="Unknown", unit="bags")
        assert validated.candidate.feed_type == "unknown"
        assert validated.candidate.is_feed_type_unspecified

    @pytest.mark.parametrize("spoken,unit", [("sako", FeedUnit.BAGS), ("Bale", FeedUnit.BALES), ("kilos", FeedUnit.KG)])
    def test_unit_aliases(self, spoken, unit):
        validated = validate(activity_type="feeding", quantity=2, feed_type="hay", unit=spoken)
        assert validated.unit == unit
        assert validated.candidate.unit == unit.value

    def test_unrecognized_unit_rejected(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="feeding", quantity=2, feed_type="hay", unit="buckets")

    def test_quantity_bounds(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="feeding", quantity=20000, feed_type="hay")


class TestOtherKinds:

    def test_health_notes_minimum_length(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="health_observation", notes="ok")

    @pytest.mark.parametrize("quantity", [5, 2500])
    def test_weight_range(self, quantity):
        with pytest.raises(InputValidationError):
            validate(activity_type="weight_measurement", quantity=quantity)

    def test_injection_requires_medicine(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="injection", dosage="5ml")

    def test_injection_dosage_length(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="injection", medicine_name="oxytetracycline", dosage="x" * 51)

    def test_cleaning_needs_nothing(self):
        assert validate(activity_type="cleaning").kind == ActivityKind.CLEANING

    def test_text_ceiling_applies_to_every_kind(self):
        with pytest.raises(InputValidationError):
            validate(activity_type="cleaning", notes="x" * (MAX_TEXT_LENGTH + 1))

    def test_message_is_bilingual(self):
        with pytest.raises(InputValidationError) as exc_info:
            validate(activity_type="milking", quantity=0)
        assert exc_info.value.message.startswith("Hindi valid ang data")
        assert "Invalid data" in exc_info.value.message
