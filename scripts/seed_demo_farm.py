"""Seed a local database with a demo farm.

Creates one farm with an owner, a manager and a farmhand, a small herd and
a feed inventory so the API and workflows can be exercised end to end.

Usage:
    python scripts/seed_demo_farm.py [--db farm_activity.db]
"""

import argparse
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import get_settings
from core.observability.logging import get_logger
from models.activity import Animal, FarmApprovalSettings, FarmRole, FeedInventoryEntry
from storage.farm_store import SQLiteFarmStore


logger = get_logger(__name__)

FARM_ID = "demo-farm"

MEMBERS = [
    ("owner-1", FarmRole.OWNER),
    ("manager-1", FarmRole.MANAGER),
    ("hand-1", FarmRole.FARMHAND),
]

HERD = [
    ("cow-bessie", "Bessie", "A001", 450.0),
    ("cow-daisy", "Daisy", "A002", 380.0),
    ("cow-lola", "Lola", "B017", 520.0),
    ("goat-kambing", "Kambing", "G003", 35.0),
]

FEEDS = [
    ("feed-hay", "hay", "bales", 500.0, 20.0),
    ("feed-bran", "rice bran", "bags", 250.0, 50.0),
    ("feed-silage", "corn silage", "kg", 1200.0, None),
]


def seed(store: SQLiteFarmStore) -> None:
    store.init_schema()
    store.add_farm(FARM_ID, "Demo Farm", max_backdate_days=7)
    for user_id, role in MEMBERS:
        store.add_member(FARM_ID, user_id, role)
    store.set_approval_settings(FarmApprovalSettings(
        farm_id=FARM_ID,
        approval_enabled=True,
        auto_approve_enabled=True,
        auto_approve_hours=48,
    ))

    entry_date = date.today() - timedelta(days=365)
    for animal_id, name, tag, weight in HERD:
        store.add_animal(Animal(
            id=animal_id,
            farm_id=FARM_ID,
            name=name,
            ear_tag=tag,
            current_weight_kg=weight,
            farm_entry_date=entry_date,
        ))

    stocked_at = datetime.now(timezone.utc) - timedelta(days=30)
    for i, (entry_id, feed_type, unit, quantity_kg, weight_per_unit) in enumerate(FEEDS):
        store.add_feed_inventory(FeedInventoryEntry(
            id=entry_id,
            farm_id=FARM_ID,
            feed_type=feed_type,
            unit=unit,
            quantity_kg=quantity_kg,
            weight_per_unit=weight_per_unit,
            created_at=stocked_at + timedelta(minutes=i),
        ))

    logger.info(f"Seeded farm {FARM_ID}: {len(MEMBERS)} members, {len(HERD)} animals, {len(FEEDS)} feeds")


def main():
    parser = argparse.ArgumentParser(description="Seed a demo farm")
    parser.add_argument("--db", default=str(get_settings().db_path), help="SQLite database path")
    args = parser.parse_args()
    seed(SQLiteFarmStore(Path(args.db)))


if __name__ == "__main__":
    main()
