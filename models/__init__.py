"""Models Package.

Domain models for farm activity ingestion and the response payloads the
pipeline returns.
"""

from models.activity import (
    ActivityKind,
    ActivityCandidate,
    ActorIdentity,
    Animal,
    AnimalShare,
    ApprovalStatus,
    DistributionPlan,
    FarmApprovalSettings,
    FarmRole,
    FeedInventoryEntry,
    FeedUnit,
    PendingApproval,
    ResolvedActivity,
    ANIMAL_REQUIRED_KINDS,
    COUNT_UNITS,
    DIRECT_UNITS,
    UNKNOWN_FEED_TYPE,
)

from models.responses import (
    ActivityOutcome,
    IngestionOutcome,
    IngestionResponse,
    ReviewResult,
)

__all__ = [
    # Activity models
    "ActivityKind",
    "ActivityCandidate",
    "ActorIdentity",
    "Animal",
    "AnimalShare",
    "ApprovalStatus",
    "DistributionPlan",
    "FarmApprovalSettings",
    "FarmRole",
    "FeedInventoryEntry",
    "FeedUnit",
    "PendingApproval",
    "ResolvedActivity",
    "ANIMAL_REQUIRED_KINDS",
    "COUNT_UNITS",
    "DIRECT_UNITS",
    "UNKNOWN_FEED_TYPE",
    # Responses
    "ActivityOutcome",
    "IngestionOutcome",
    "IngestionResponse",
    "ReviewResult",
]
