"""Farm data store interface.

The ingestion pipeline only depends on these farm-scoped primitives, so any
relational backend offering them can replace the SQLite implementation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from models.activity import (
    Animal,
    ApprovalStatus,
    FarmApprovalSettings,
    FarmRole,
    FeedInventoryEntry,
    PendingApproval,
)


@dataclass
class DomainRecord:
    """One row destined for an activity table.

    Attributes:
        table: Target table (milking_records, feeding_records, ...)
        values: Column values, excluding the generated id and created_at
    """
    table: str
    values: Dict[str, Any] = field(default_factory=dict)


class FarmDataStore(Protocol):
    """Farm-scoped queries and commands used by the pipeline."""

    def get_max_backdate_days(self, farm_id: str) -> Optional[int]:
        ...

    def get_member_role(self, farm_id: str, user_id: str) -> Optional[FarmRole]:
        ...

    def get_approval_settings(self, farm_id: str) -> Optional[FarmApprovalSettings]:
        ...

    def list_animals(self, farm_id: str) -> List[Animal]:
        ...

    def get_animal(self, farm_id: str, animal_id: str) -> Optional[Animal]:
        ...

    def list_feed_inventory(self, farm_id: str, in_stock_only: bool = True) -> List[FeedInventoryEntry]:
        ...

    def get_submission_response(self, farm_id: str, submission_id: str) -> Optional[Dict[str, Any]]:
        ...

    def commit_submission(
        self,
        farm_id: str,
        actor_id: str,
        submission_id: Optional[str],
        records: List[DomainRecord],
        pending: List[PendingApproval],
        response: Dict[str, Any],
    ) -> bool:
        ...

    def get_pending(self, pending_id: str) -> Optional[PendingApproval]:
        ...

    def list_pending(self, farm_id: str, status: Optional[ApprovalStatus] = None) -> List[PendingApproval]:
        ...

    def list_due_pending(self, now: datetime, farm_id: Optional[str] = None) -> List[PendingApproval]:
        ...

    def finalize_pending(
        self,
        pending_id: str,
        status: ApprovalStatus,
        reviewed_at: datetime,
        reviewed_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        records: Optional[List[DomainRecord]] = None,
    ) -> bool:
        ...
