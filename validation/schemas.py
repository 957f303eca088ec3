"""Per-activity validation schemas.

Bounds are plausibility limits for a single logged action:
- milking: 0.1 to 100 liters per session
- feeding: 0.1 to 10,000 units
- weight: 10 to 2,000 kg live weight
- health notes: at least 5 characters
- injection: medicine name 2 to 100 characters, dosage up to 50
Every free-text field is capped at MAX_TEXT_LENGTH.
"""

from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.activity import UNKNOWN_FEED_TYPE, ActivityKind, FeedUnit


MAX_TEXT_LENGTH = 500

# Spoken or misspelled unit names the extraction model sometimes returns
UNIT_ALIASES: Dict[str, FeedUnit] = {
    "bale": FeedUnit.BALES,
    "bigkis": FeedUnit.BALES,
    "bag": FeedUnit.BAGS,
    "sako": FeedUnit.BAGS,
    "barrel": FeedUnit.BARRELS,
    "drum": FeedUnit.BARRELS,
    "drums": FeedUnit.BARRELS,
    "kilo": FeedUnit.KG,
    "kilos": FeedUnit.KG,
    "kilogram": FeedUnit.KG,
    "kilograms": FeedUnit.KG,
    "liter": FeedUnit.LITERS,
    "litre": FeedUnit.LITERS,
    "litres": FeedUnit.LITERS,
    "litro": FeedUnit.LITERS,
}


class ActivitySchema(BaseModel):
    """Rules shared by every activity kind."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, allow_inf_nan=False)

    animal_identifier: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    notes: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    date_reference: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    livestock_type: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)


class MilkingSchema(ActivitySchema):
    quantity: float = Field(..., ge=0.1, le=100)


class FeedingSchema(ActivitySchema):
    quantity: float = Field(..., ge=0.1, le=10000)
    feed_type: Optional[str] = None
    unit: Optional[FeedUnit] = None

    @field_validator("feed_type")
    @classmethod
    def _check_feed_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if value == "":
            raise ValueError("feed type must not be empty")
        if value.lower() == UNKNOWN_FEED_TYPE:
            return UNKNOWN_FEED_TYPE
        if len(value) < 2:
            raise ValueError("feed type must be at least 2 characters")
        if len(value) > 100:
            raise ValueError("feed type must be at most 100 characters")
        return value

    @field_validator("unit", mode="before")
    @classmethod
    def _coerce_unit(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "":
                return None
            return UNIT_ALIASES.get(lowered, lowered)
        return value


class HealthObservationSchema(ActivitySchema):
    notes: str = Field(..., min_length=5, max_length=MAX_TEXT_LENGTH)


class WeightMeasurementSchema(ActivitySchema):
    quantity: float = Field(..., ge=10, le=2000)


class InjectionSchema(ActivitySchema):
    medicine_name: str = Field(..., min_length=2, max_length=100)
    dosage: Optional[str] = Field(None, max_length=50)


class CleaningSchema(ActivitySchema):
    pass


SCHEMAS: Dict[ActivityKind, Type[ActivitySchema]] = {
    ActivityKind.MILKING: MilkingSchema,
    ActivityKind.FEEDING: FeedingSchema,
    ActivityKind.HEALTH_OBSERVATION: HealthObservationSchema,
    ActivityKind.WEIGHT_MEASUREMENT: WeightMeasurementSchema,
    ActivityKind.INJECTION: InjectionSchema,
    ActivityKind.CLEANING: CleaningSchema,
}
