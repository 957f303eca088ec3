"""SQLite farm data store.

This module handles all database operations for activity ingestion:
- Schema initialization
- Farm, membership, roster and inventory reads
- Atomic commit of a submission's records and pending approvals
- Pending approval review transitions
- Sample data seeding helpers

Every read and write is scoped by farm_id.
"""

import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from core.config import REPO_ROOT
from core.errors import UpstreamTimeoutError
from models.activity import (
    Animal,
    ApprovalStatus,
    FarmApprovalSettings,
    FarmRole,
    FeedInventoryEntry,
    PendingApproval,
)
from storage.base import DomainRecord


DEFAULT_DB_PATH = REPO_ROOT / "farm_activity.db"

RECORD_TABLES = (
    "milking_records",
    "feeding_records",
    "weight_records",
    "injection_records",
    "health_records",
    "cleaning_records",
)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS farms (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        max_backdate_days INTEGER,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS farm_members (
        farm_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL CHECK(role IN ('owner', 'manager', 'farmhand')),
        PRIMARY KEY (farm_id, user_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS farm_approval_settings (
        farm_id TEXT PRIMARY KEY,
        approval_enabled INTEGER NOT NULL DEFAULT 1,
        auto_approve_enabled INTEGER NOT NULL DEFAULT 1,
        auto_approve_hours INTEGER NOT NULL DEFAULT 48,
        require_approval_for_types TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS animals (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        name TEXT,
        ear_tag TEXT,
        current_weight_kg REAL,
        farm_entry_date TEXT,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS feed_inventory (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        feed_type TEXT NOT NULL,
        unit TEXT NOT NULL,
        quantity_kg REAL NOT NULL DEFAULT 0,
        weight_per_unit REAL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS milking_records (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        animal_id TEXT NOT NULL,
        record_date TEXT NOT NULL,
        record_datetime TEXT,
        liters REAL NOT NULL,
        livestock_type TEXT,
        notes TEXT,
        created_by TEXT,
        submission_id TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS feeding_records (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        animal_id TEXT NOT NULL,
        record_date TEXT NOT NULL,
        record_datetime TEXT,
        feed_type TEXT NOT NULL,
        kilograms REAL NOT NULL,
        quantity REAL,
        unit TEXT,
        weight_per_unit REAL,
        notes TEXT,
        created_by TEXT,
        submission_id TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS weight_records (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        animal_id TEXT NOT NULL,
        record_date TEXT NOT NULL,
        record_datetime TEXT,
        weight_kg REAL NOT NULL,
        notes TEXT,
        created_by TEXT,
        submission_id TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS injection_records (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        animal_id TEXT NOT NULL,
        record_date TEXT NOT NULL,
        record_datetime TEXT,
        medicine_name TEXT NOT NULL,
        dosage TEXT,
        notes TEXT,
        created_by TEXT,
        submission_id TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS health_records (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        animal_id TEXT NOT NULL,
        record_date TEXT NOT NULL,
        record_datetime TEXT,
        notes TEXT NOT NULL,
        created_by TEXT,
        submission_id TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cleaning_records (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        animal_id TEXT,
        record_date TEXT NOT NULL,
        record_datetime TEXT,
        notes TEXT,
        created_by TEXT,
        submission_id TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pending_activities (
        id TEXT PRIMARY KEY,
        farm_id TEXT NOT NULL,
        submitted_by TEXT NOT NULL,
        activity_type TEXT NOT NULL,
        activity_data TEXT NOT NULL,
        animal_ids TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK(status IN ('pending', 'approved', 'auto_approved', 'rejected')),
        submitted_at TEXT NOT NULL,
        auto_approve_at TEXT,
        reviewed_by TEXT,
        reviewed_at TEXT,
        rejection_reason TEXT,
        submission_id TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ingestion_submissions (
        farm_id TEXT NOT NULL,
        submission_id TEXT NOT NULL,
        actor_id TEXT NOT NULL,
        response TEXT NOT NULL,
        created_at TEXT NOT NULL,
        PRIMARY KEY (farm_id, submission_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_animals_farm ON animals(farm_id)",
    "CREATE INDEX IF NOT EXISTS idx_feed_inventory_lookup ON feed_inventory(farm_id, unit, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_pending_status ON pending_activities(status, auto_approve_at)",
    "CREATE INDEX IF NOT EXISTS idx_pending_farm ON pending_activities(farm_id, status)",
]


def to_iso(value: datetime) -> str:
    """Serialize a timestamp as UTC ISO-8601. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> str:
    return to_iso(datetime.now(timezone.utc))


def _is_lock_timeout(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return "locked" in message or "busy" in message


class SQLiteFarmStore:
    """Farm data store backed by a single SQLite file.

    A connection is opened per operation. Writes that must land together
    run inside one transaction; a lock wait longer than timeout_seconds
    rolls back and surfaces as UpstreamTimeoutError.
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, timeout_seconds: float = 10.0):
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout_seconds)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            conn.rollback()
            if _is_lock_timeout(e):
                raise UpstreamTimeoutError("data store") from e
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create tables and indexes if they don't exist."""
        with self._connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    # =========================================================================
    # Farm and membership
    # =========================================================================

    def get_max_backdate_days(self, farm_id: str) -> Optional[int]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT max_backdate_days FROM farms WHERE id = ?", (farm_id,)
            ).fetchone()
        return row["max_backdate_days"] if row else None

    def get_member_role(self, farm_id: str, user_id: str) -> Optional[FarmRole]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT role FROM farm_members WHERE farm_id = ? AND user_id = ?",
                (farm_id, user_id),
            ).fetchone()
        return FarmRole(row["role"]) if row else None

    def get_approval_settings(self, farm_id: str) -> Optional[FarmApprovalSettings]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM farm_approval_settings WHERE farm_id = ?", (farm_id,)
            ).fetchone()
        if not row:
            return None
        types = row["require_approval_for_types"]
        return FarmApprovalSettings(
            farm_id=row["farm_id"],
            approval_enabled=bool(row["approval_enabled"]),
            auto_approve_enabled=bool(row["auto_approve_enabled"]),
            auto_approve_hours=row["auto_approve_hours"],
            require_approval_for_types=json.loads(types) if types else None,
        )

    # =========================================================================
    # Roster and inventory
    # =========================================================================

    @staticmethod
    def _row_to_animal(row: sqlite3.Row) -> Animal:
        return Animal(
            id=row["id"],
            farm_id=row["farm_id"],
            name=row["name"],
            ear_tag=row["ear_tag"],
            current_weight_kg=row["current_weight_kg"],
            farm_entry_date=date.fromisoformat(row["farm_entry_date"]) if row["farm_entry_date"] else None,
            is_deleted=bool(row["is_deleted"]),
            created_at=from_iso(row["created_at"]),
        )

    def list_animals(self, farm_id: str) -> List[Animal]:
        """Non-deleted animals of a farm in roster order."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM animals
                WHERE farm_id = ? AND is_deleted = 0
                ORDER BY created_at, id
                """,
                (farm_id,),
            ).fetchall()
        return [self._row_to_animal(r) for r in rows]

    def get_animal(self, farm_id: str, animal_id: str) -> Optional[Animal]:
        """A non-deleted animal, only if it belongs to farm_id."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM animals WHERE id = ? AND farm_id = ? AND is_deleted = 0",
                (animal_id, farm_id),
            ).fetchone()
        return self._row_to_animal(row) if row else None

    def list_feed_inventory(self, farm_id: str, in_stock_only: bool = True) -> List[FeedInventoryEntry]:
        """Inventory rows oldest first."""
        query = "SELECT * FROM feed_inventory WHERE farm_id = ?"
        if in_stock_only:
            query += " AND quantity_kg > 0"
        query += " ORDER BY created_at, id"
        with self._connect() as conn:
            rows = conn.execute(query, (farm_id,)).fetchall()
        return [
            FeedInventoryEntry(
                id=r["id"],
                farm_id=r["farm_id"],
                feed_type=r["feed_type"],
                unit=r["unit"],
                quantity_kg=r["quantity_kg"],
                weight_per_unit=r["weight_per_unit"],
                created_at=from_iso(r["created_at"]),
            )
            for r in rows
        ]

    # =========================================================================
    # Submissions
    # =========================================================================

    def get_submission_response(self, farm_id: str, submission_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT response FROM ingestion_submissions WHERE farm_id = ? AND submission_id = ?",
                (farm_id, submission_id),
            ).fetchone()
        return json.loads(row["response"]) if row else None

    def _insert_record(self, conn: sqlite3.Connection, record: DomainRecord, created_at: str) -> str:
        if record.table not in RECORD_TABLES:
            raise ValueError(f"Unknown record table: {record.table}")
        values = dict(record.values)
        values["id"] = str(uuid.uuid4())
        values["created_at"] = created_at
        columns = ", ".join(values.keys())
        placeholders = ", ".join("?" for _ in values)
        conn.execute(
            f"INSERT INTO {record.table} ({columns}) VALUES ({placeholders})",
            tuple(values.values()),
        )
        if record.table == "weight_records":
            conn.execute(
                "UPDATE animals SET current_weight_kg = ? WHERE id = ? AND farm_id = ?",
                (values["weight_kg"], values["animal_id"], values["farm_id"]),
            )
        return values["id"]

    def _insert_pending(self, conn: sqlite3.Connection, pending: PendingApproval) -> None:
        conn.execute(
            """
            INSERT INTO pending_activities
            (id, farm_id, submitted_by, activity_type, activity_data, animal_ids, status,
             submitted_at, auto_approve_at, submission_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                pending.id,
                pending.farm_id,
                pending.submitted_by,
                pending.activity_type.value,
                json.dumps(pending.activity_data, default=str),
                json.dumps(pending.animal_ids),
                pending.status.value,
                to_iso(pending.submitted_at),
                to_iso(pending.auto_approve_at) if pending.auto_approve_at else None,
                pending.submission_id,
            ),
        )

    def commit_submission(
        self,
        farm_id: str,
        actor_id: str,
        submission_id: Optional[str],
        records: List[DomainRecord],
        pending: List[PendingApproval],
        response: Dict[str, Any],
    ) -> bool:
        """Write every record and pending row of a submission in one transaction.

        Returns:
            False if the submission_id was already committed (nothing written)
        """
        created_at = _utcnow()
        try:
            with self._connect() as conn:
                for record in records:
                    self._insert_record(conn, record, created_at)
                for item in pending:
                    self._insert_pending(conn, item)
                if submission_id:
                    conn.execute(
                        """
                        INSERT INTO ingestion_submissions (farm_id, submission_id, actor_id, response, created_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (farm_id, submission_id, actor_id, json.dumps(response, default=str), created_at),
                    )
        except sqlite3.IntegrityError:
            if submission_id and self.get_submission_response(farm_id, submission_id) is not None:
                return False
            raise
        return True

    # =========================================================================
    # Pending approvals
    # =========================================================================

    @staticmethod
    def _row_to_pending(row: sqlite3.Row) -> PendingApproval:
        return PendingApproval(
            id=row["id"],
            farm_id=row["farm_id"],
            submitted_by=row["submitted_by"],
            activity_type=row["activity_type"],
            activity_data=json.loads(row["activity_data"]),
            animal_ids=json.loads(row["animal_ids"]),
            status=ApprovalStatus(row["status"]),
            submitted_at=from_iso(row["submitted_at"]),
            auto_approve_at=from_iso(row["auto_approve_at"]),
            reviewed_by=row["reviewed_by"],
            reviewed_at=from_iso(row["reviewed_at"]),
            rejection_reason=row["rejection_reason"],
            submission_id=row["submission_id"],
        )

    def get_pending(self, pending_id: str) -> Optional[PendingApproval]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM pending_activities WHERE id = ?", (pending_id,)
            ).fetchone()
        return self._row_to_pending(row) if row else None

    def list_pending(self, farm_id: str, status: Optional[ApprovalStatus] = None) -> List[PendingApproval]:
        query = "SELECT * FROM pending_activities WHERE farm_id = ?"
        params: List[Any] = [farm_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY submitted_at, id"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_pending(r) for r in rows]

    def list_due_pending(self, now: datetime, farm_id: Optional[str] = None) -> List[PendingApproval]:
        """Pending rows whose auto-approval deadline has passed, across farms unless one is given."""
        query = """
            SELECT * FROM pending_activities
            WHERE status = 'pending' AND auto_approve_at IS NOT NULL AND auto_approve_at <= ?
        """
        params: List[Any] = [to_iso(now)]
        if farm_id is not None:
            query += " AND farm_id = ?"
            params.append(farm_id)
        query += " ORDER BY auto_approve_at, id"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_pending(r) for r in rows]

    def finalize_pending(
        self,
        pending_id: str,
        status: ApprovalStatus,
        reviewed_at: datetime,
        reviewed_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        records: Optional[List[DomainRecord]] = None,
    ) -> bool:
        """Move a pending row to a terminal status and write its records.

        The status update is conditional on the row still being pending, so
        two reviewers racing on the same row cannot both succeed.

        Returns:
            False if the row was no longer pending (nothing written)
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE pending_activities
                SET status = ?, reviewed_by = ?, reviewed_at = ?, rejection_reason = ?
                WHERE id = ? AND status = 'pending'
                """,
                (status.value, reviewed_by, to_iso(reviewed_at), rejection_reason, pending_id),
            )
            if cursor.rowcount == 0:
                return False
            created_at = _utcnow()
            for record in records or []:
                self._insert_record(conn, record, created_at)
        return True

    # =========================================================================
    # Record queries
    # =========================================================================

    def list_records(self, table: str, farm_id: str) -> List[Dict[str, Any]]:
        """Committed rows of one activity table for a farm."""
        if table not in RECORD_TABLES:
            raise ValueError(f"Unknown record table: {table}")
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE farm_id = ? ORDER BY created_at, rowid",
                (farm_id,),
            ).fetchall()
        return [dict(r) for r in rows]

    # =========================================================================
    # Seeding
    # =========================================================================

    def add_farm(self, farm_id: str, name: str, max_backdate_days: Optional[int] = None) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO farms (id, name, max_backdate_days, created_at) VALUES (?, ?, ?, ?)",
                (farm_id, name, max_backdate_days, _utcnow()),
            )

    def add_member(self, farm_id: str, user_id: str, role: FarmRole) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO farm_members (farm_id, user_id, role) VALUES (?, ?, ?)",
                (farm_id, user_id, role.value),
            )

    def set_approval_settings(self, settings: FarmApprovalSettings) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO farm_approval_settings
                (farm_id, approval_enabled, auto_approve_enabled, auto_approve_hours, require_approval_for_types)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    settings.farm_id,
                    int(settings.approval_enabled),
                    int(settings.auto_approve_enabled),
                    settings.auto_approve_hours,
                    json.dumps(settings.require_approval_for_types)
                    if settings.require_approval_for_types is not None else None,
                ),
            )

    def add_animal(self, animal: Animal) -> Animal:
        created_at = animal.created_at or datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO animals
                (id, farm_id, name, ear_tag, current_weight_kg, farm_entry_date, is_deleted, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    animal.id,
                    animal.farm_id,
                    animal.name,
                    animal.ear_tag,
                    animal.current_weight_kg,
                    animal.farm_entry_date.isoformat() if animal.farm_entry_date else None,
                    int(animal.is_deleted),
                    to_iso(created_at),
                ),
            )
        return animal.model_copy(update={"created_at": created_at})

    def add_feed_inventory(self, entry: FeedInventoryEntry) -> FeedInventoryEntry:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO feed_inventory
                (id, farm_id, feed_type, unit, quantity_kg, weight_per_unit, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.farm_id,
                    entry.feed_type,
                    entry.unit,
                    entry.quantity_kg,
                    entry.weight_per_unit,
                    to_iso(entry.created_at),
                ),
            )
        return entry
