"""Error taxonomy for the activity ingestion pipeline.

Every domain failure carries a machine-readable code and a bilingual
message (Filipino first, English second) because farmhands and the
managers reviewing logs may not share a primary language.
"""

from typing import List, Optional


class IngestionError(Exception):
    """Base exception for ingestion failures.

    Attributes:
        code: Machine-readable error code (e.g. FUTURE_DATE)
        message_fil: Filipino text shown to the farmhand
        message_en: English text
        options: Candidate values the user may pick from, if any
        retryable: Whether the caller may resubmit unchanged
    """

    code = "INGESTION_ERROR"
    retryable = False

    def __init__(
        self,
        message_fil: str,
        message_en: str,
        code: Optional[str] = None,
        options: Optional[List[str]] = None,
    ):
        self.message_fil = message_fil
        self.message_en = message_en
        if code:
            self.code = code
        self.options = list(options or [])
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return f"{self.message_fil} / {self.message_en}"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "options": self.options,
            "retryable": self.retryable,
        }


class InputValidationError(IngestionError):
    """Malformed or out-of-range candidate fields."""
    code = "INVALID_DATA"

    def __init__(self, issues: List[str], code: Optional[str] = None):
        self.issues = list(issues)
        joined = "; ".join(self.issues)
        super().__init__(
            f"Hindi valid ang data: {joined}",
            f"Invalid data: {joined}",
            code=code,
        )


class AmbiguousReferenceError(IngestionError):
    """An animal or feed reference matched more than one record."""
    code = "NEEDS_CLARIFICATION"


class InventoryAbsenceError(IngestionError):
    """The referenced feed type or unit has no usable inventory."""
    code = "FEED_TYPE_NOT_IN_INVENTORY"


class TemporalPolicyError(IngestionError):
    """Future-dated, too old, or earlier than the animal's farm entry."""
    code = "INVALID_DATE"


class AuthorizationError(IngestionError):
    """Actor or animal outside the requesting farm."""
    code = "FORBIDDEN"


class UpstreamTimeoutError(IngestionError):
    """Extraction oracle or data store did not answer in time."""
    code = "UPSTREAM_TIMEOUT"
    retryable = True

    def __init__(self, component: str):
        self.component = component
        super().__init__(
            f"Hindi tumugon ang {component}. Pakisubukang muli.",
            f"The {component} did not respond in time. Please try again.",
        )


class DistributionError(IngestionError):
    """Bulk feed could not be distributed over the herd."""
    code = "NO_ELIGIBLE_ANIMALS"


class ApprovalStateError(IngestionError):
    """A pending approval was moved along an invalid transition."""
    code = "INVALID_APPROVAL_TRANSITION"


class NotFoundError(IngestionError):
    """A referenced record does not exist in the farm's scope."""
    code = "NOT_FOUND"
