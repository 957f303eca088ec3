"""Farm activity domain models.

This module defines the Pydantic models shared by the ingestion pipeline:
- ActivityCandidate: untrusted structured guess from the extraction model
- ResolvedActivity: a candidate with every reference bound
- Animal / FeedInventoryEntry: farm-scoped roster and inventory rows
- DistributionPlan: weight-proportional split of a bulk feeding
- PendingApproval: a resolved payload waiting for manager review
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActivityKind(str, Enum):
    """Closed set of loggable farm activities."""
    MILKING = "milking"
    FEEDING = "feeding"
    HEALTH_OBSERVATION = "health_observation"
    WEIGHT_MEASUREMENT = "weight_measurement"
    INJECTION = "injection"
    CLEANING = "cleaning"


# Kinds that can only be logged against one specific animal
ANIMAL_REQUIRED_KINDS = frozenset({
    ActivityKind.MILKING,
    ActivityKind.HEALTH_OBSERVATION,
    ActivityKind.WEIGHT_MEASUREMENT,
    ActivityKind.INJECTION,
})


class FeedUnit(str, Enum):
    """Units a quantity can be reported in."""
    BALES = "bales"
    BAGS = "bags"
    BARRELS = "barrels"
    KG = "kg"
    LITERS = "liters"


COUNT_UNITS = frozenset({FeedUnit.BALES, FeedUnit.BAGS, FeedUnit.BARRELS})
DIRECT_UNITS = frozenset({FeedUnit.KG, FeedUnit.LITERS})

UNKNOWN_FEED_TYPE = "unknown"


class ApprovalStatus(str, Enum):
    """Lifecycle of a queued activity."""
    PENDING = "pending"
    APPROVED = "approved"
    AUTO_APPROVED = "auto_approved"
    REJECTED = "rejected"


class FarmRole(str, Enum):
    """Membership role of a user within a farm."""
    OWNER = "owner"
    MANAGER = "manager"
    FARMHAND = "farmhand"


class ActorIdentity(BaseModel):
    """Verified (user, farm) pair supplied by the authentication layer."""
    user_id: str
    farm_id: str


class ActivityCandidate(BaseModel):
    """Best-effort structured guess for one logged action.

    Every field is optional because the extraction model's output is
    untrusted. Unknown keys are dropped.
    """
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    activity_type: Optional[str] = None
    animal_identifier: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    feed_type: Optional[str] = None
    medicine_name: Optional[str] = None
    dosage: Optional[str] = None
    notes: Optional[str] = None
    date_reference: Optional[str] = None
    livestock_type: Optional[str] = None

    @property
    def is_feed_type_unspecified(self) -> bool:
        return self.feed_type is None or self.feed_type.lower() == UNKNOWN_FEED_TYPE


class Animal(BaseModel):
    """Farm-owned animal as seen by the resolvers."""
    id: str
    farm_id: str
    name: Optional[str] = None
    ear_tag: Optional[str] = None
    current_weight_kg: Optional[float] = None
    farm_entry_date: Optional[date] = None
    is_deleted: bool = False
    created_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        if self.name and self.ear_tag:
            return f"{self.name} ({self.ear_tag})"
        return self.name or self.ear_tag or self.id


class FeedInventoryEntry(BaseModel):
    """Farm-scoped feed stock row. Read-only for this service."""
    id: str
    farm_id: str
    feed_type: str
    unit: str
    quantity_kg: float = 0.0
    weight_per_unit: Optional[float] = None
    created_at: datetime


class FarmApprovalSettings(BaseModel):
    """Per-farm approval configuration."""
    farm_id: str
    approval_enabled: bool = True
    auto_approve_enabled: bool = True
    auto_approve_hours: int = 48
    require_approval_for_types: Optional[List[str]] = None


class AnimalShare(BaseModel):
    """One animal's share of a bulk feeding."""
    animal_id: str
    animal_name: Optional[str] = None
    ear_tag: Optional[str] = None
    weight_kg: float
    proportion: float
    feed_kg: float


class DistributionPlan(BaseModel):
    """Weight-proportional allocation of one feed type across the herd."""
    feed_type: str
    total_kg: float
    quantity: Optional[float] = None
    unit: Optional[str] = None
    weight_per_unit: Optional[float] = None
    total_animal_weight_kg: float
    shares: List[AnimalShare] = Field(default_factory=list)

    @property
    def animal_ids(self) -> List[str]:
        return [share.animal_id for share in self.shares]


class ResolvedActivity(BaseModel):
    """An ActivityCandidate after every reference has been resolved.

    The model validator rejects construction while any field required by
    the activity kind is still unbound, so nothing incomplete can reach
    persistence or the approval queue.
    """
    activity_type: ActivityKind
    animal_id: Optional[str] = None
    record_date: date
    record_datetime: datetime
    quantity: Optional[float] = None
    unit: Optional[str] = None
    feed_type: Optional[str] = None
    kilograms: Optional[float] = None
    weight_per_unit: Optional[float] = None
    feed_match_strategy: Optional[str] = None
    medicine_name: Optional[str] = None
    dosage: Optional[str] = None
    notes: Optional[str] = None
    livestock_type: Optional[str] = None
    date_reference: Optional[str] = None
    distribution: Optional[DistributionPlan] = None

    @model_validator(mode="after")
    def _check_required_fields(self) -> "ResolvedActivity":
        kind = self.activity_type
        missing = []
        if kind in ANIMAL_REQUIRED_KINDS and not self.animal_id:
            missing.append("animal_id")
        if kind in (ActivityKind.MILKING, ActivityKind.WEIGHT_MEASUREMENT) and self.quantity is None:
            missing.append("quantity")
        if kind == ActivityKind.INJECTION and not self.medicine_name:
            missing.append("medicine_name")
        if kind == ActivityKind.HEALTH_OBSERVATION and not self.notes:
            missing.append("notes")
        if kind == ActivityKind.FEEDING:
            if not self.feed_type or self.feed_type.lower() == UNKNOWN_FEED_TYPE:
                missing.append("feed_type")
            if not self.kilograms or self.kilograms <= 0:
                missing.append("kilograms")
            if not self.animal_id and self.distribution is None:
                missing.append("animal_id or distribution")
        if missing:
            raise ValueError(f"unresolved fields for {kind.value}: {', '.join(missing)}")
        return self

    @property
    def is_bulk(self) -> bool:
        return self.distribution is not None

    @property
    def animal_ids(self) -> List[str]:
        if self.distribution is not None:
            return self.distribution.animal_ids
        return [self.animal_id] if self.animal_id else []


class PendingApproval(BaseModel):
    """A resolved activity queued for manager review."""
    id: str
    farm_id: str
    submitted_by: str
    activity_type: ActivityKind
    activity_data: Dict[str, Any]
    animal_ids: List[str] = Field(default_factory=list)
    status: ApprovalStatus = ApprovalStatus.PENDING
    submitted_at: datetime
    auto_approve_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    submission_id: Optional[str] = None

    def resolved_activity(self) -> ResolvedActivity:
        return ResolvedActivity.model_validate(self.activity_data)
