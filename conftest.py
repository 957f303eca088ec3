"""Shared fixtures: a seeded temporary farm database and a scripted oracle."""

import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from core.audit.events import AuditLogger, InMemoryAuditBackend
from core.config import Settings
from ingestion.orchestrator import ActivityIngestionOrchestrator
from models.activity import Animal, FarmApprovalSettings, FarmRole, FeedInventoryEntry
from storage.farm_store import SQLiteFarmStore


# Wednesday
NOW = datetime(2026, 3, 11, 9, 0, tzinfo=timezone.utc)

FARM_ID = "farm-1"
OTHER_FARM_ID = "farm-2"

OWNER = "owner-1"
MANAGER = "manager-1"
FARMHAND = "hand-1"
OUTSIDER = "hand-2"

# id, name, ear tag, weight, farm entry date
HERD = [
    ("cow-bessie", "Bessie", "A001", 400.0, date(2025, 1, 15)),
    ("cow-daisy", "Daisy", "A002", 200.0, date(2025, 1, 15)),
    ("cow-lola", "Lola", "A0021", 600.0, date(2025, 6, 1)),
    ("cow-newbie", "Newbie", "N001", 300.0, date(2026, 3, 10)),
    ("calf-1", "Calf", "C010", None, date(2026, 2, 1)),
]

# id, feed type, unit, stock kg, weight per unit, age in days
FEEDS = [
    ("inv-hay", "hay", "bags", 500.0, 50.0, 10),
    ("inv-bran", "rice bran", "bags", 250.0, 25.0, 9),
    ("inv-silage", "corn silage", "kg", 1200.0, None, 8),
    ("inv-cassava", "cassava", "bales", 0.0, 30.0, 7),
]


class FakeOracle:
    """Extraction oracle returning scripted candidates."""

    def __init__(self, candidates: Optional[List[Any]] = None, error: Optional[Exception] = None):
        self.candidates = list(candidates or [])
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def extract(self, transcription: str, animal_context: Optional[Animal] = None) -> List[Any]:
        self.calls.append({"transcription": transcription, "animal_context": animal_context})
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def seed_farm(store: SQLiteFarmStore) -> None:
    store.init_schema()
    store.add_farm(FARM_ID, "Test Farm", max_backdate_days=7)
    store.add_farm(OTHER_FARM_ID, "Neighbour Farm")
    store.add_member(FARM_ID, OWNER, FarmRole.OWNER)
    store.add_member(FARM_ID, MANAGER, FarmRole.MANAGER)
    store.add_member(FARM_ID, FARMHAND, FarmRole.FARMHAND)
    store.add_member(OTHER_FARM_ID, OUTSIDER, FarmRole.FARMHAND)
    store.set_approval_settings(FarmApprovalSettings(
        farm_id=FARM_ID,
        approval_enabled=True,
        auto_approve_enabled=True,
        auto_approve_hours=48,
    ))

    created = NOW - timedelta(days=400)
    for i, (animal_id, name, tag, weight, entry) in enumerate(HERD):
        store.add_animal(Animal(
            id=animal_id,
            farm_id=FARM_ID,
            name=name,
            ear_tag=tag,
            current_weight_kg=weight,
            farm_entry_date=entry,
            created_at=created + timedelta(minutes=i),
        ))
    store.add_animal(Animal(
        id="cow-elsewhere",
        farm_id=OTHER_FARM_ID,
        name="Stranger",
        ear_tag="Z999",
        current_weight_kg=350.0,
        created_at=created,
    ))

    for entry_id, feed_type, unit, stock, per_unit, age in FEEDS:
        store.add_feed_inventory(FeedInventoryEntry(
            id=entry_id,
            farm_id=FARM_ID,
            feed_type=feed_type,
            unit=unit,
            quantity_kg=stock,
            weight_per_unit=per_unit,
            created_at=NOW - timedelta(days=age),
        ))


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "farm_test.db"


@pytest.fixture
def store(db_path) -> SQLiteFarmStore:
    farm_store = SQLiteFarmStore(db_path, timeout_seconds=5)
    seed_farm(farm_store)
    return farm_store


@pytest.fixture
def settings(db_path) -> Settings:
    return Settings(db_path=db_path, db_timeout_seconds=5)


@pytest.fixture
def audit_backend() -> InMemoryAuditBackend:
    return InMemoryAuditBackend()


@pytest.fixture
def audit(audit_backend) -> AuditLogger:
    logger = AuditLogger()
    logger.add_backend(audit_backend)
    return logger


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def orchestrator(store, oracle, audit, settings) -> ActivityIngestionOrchestrator:
    return ActivityIngestionOrchestrator(
        store,
        oracle=oracle,
        audit=audit,
        settings=settings,
        clock=lambda: NOW,
    )
