"""Tests for feed type canonicalization and unit conversion."""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import AmbiguousReferenceError, InventoryAbsenceError, UpstreamTimeoutError
from feed_resolver import (
    INVENTORY_UNIT_STRATEGY,
    InventoryResolver,
    canonicalize_feed_type,
    normalize_feed_type,
    oldest_weight_per_unit,
    resolve_feed_from_entries,
    singularize,
)
from models.activity import FeedInventoryEntry, FeedUnit


BASE = datetime(2026, 3, 1, tzinfo=timezone.utc)


def entry(entry_id, feed_type, unit, weight_per_unit=None, quantity_kg=100.0, age_days=0):
    return FeedInventoryEntry(
        id=entry_id,
        farm_id="farm-1",
        feed_type=feed_type,
        unit=unit,
        quantity_kg=quantity_kg,
        weight_per_unit=weight_per_unit,
        created_at=BASE - timedelta(days=age_days),
    )


@pytest.fixture
def inventory():
    return [
        entry("hay-new", "hay", "bags", 45.0, age_days=1),
        entry("hay-old", "hay", "bags", 50.0, age_days=5),
        entry("bran", "Rice Bran", "bags", 25.0, age_days=3),
        entry("silage", "corn silage", "kg"),
        entry("pellets", "Pellets", "barrels", 80.0),
        entry("molasses-empty", "molasses", "barrels", 200.0, quantity_kg=0),
    ]


class TestNormalization:

    @pytest.mark.parametrize("token,expected", [
        ("bales", "bale"),
        ("berries", "berry"),
        ("grass", "grass"),
        ("boxes", "box"),
        ("hay", "hay"),
    ])
    def test_singularize(self, token, expected):
        assert singularize(token) == expected

    def test_normalize_feed_type(self):
        assert normalize_feed_type("  Corn   Silages ") == "corn silage"
        assert normalize_feed_type(None) == ""


class TestCanonicalization:
    """Strategy chain: exact, then normalized, then substring."""

    def test_exact_case_insensitive(self, inventory):
        assert canonicalize_feed_type("rice bran", inventory) == ("Rice Bran", "exact")

    def test_normalized_plural(self, inventory):
        assert canonicalize_feed_type("pellet", inventory) == ("Pellets", "normalized")

    def test_substring_either_direction(self, inventory):
        assert canonicalize_feed_type("silage", inventory) == ("corn silage", "substring")
        assert canonicalize_feed_type("fresh hay bales", inventory)[0] == "hay"

    def test_absent_feed_type_is_hard_stop(self, inventory):
        with pytest.raises(InventoryAbsenceError) as exc_info:
            canonicalize_feed_type("sorghum", inventory)
        assert exc_info.value.code == "FEED_TYPE_NOT_IN_INVENTORY"
        assert "sorghum" in exc_info.value.message_en

    def test_several_substring_matches_ask(self):
        entries = [entry("a", "corn silage", "kg"), entry("b", "grass silage", "kg")]
        with pytest.raises(AmbiguousReferenceError) as exc_info:
            canonicalize_feed_type("silage", entries)
        assert exc_info.value.options == ["corn silage", "grass silage"]


class TestWeightPerUnit:

    def test_oldest_entry_wins(self, inventory):
        assert oldest_weight_per_unit("hay", "bags", inventory) == (50.0, "hay-old")

    def test_out_of_stock_entries_skipped(self, inventory):
        with pytest.raises(InventoryAbsenceError) as exc_info:
            oldest_weight_per_unit("molasses", "barrels", inventory)
        assert exc_info.value.code == "NO_INVENTORY_FOR_UNIT"

    def test_missing_weight(self):
        with pytest.raises(InventoryAbsenceError) as exc_info:
            oldest_weight_per_unit("hay", "bales", [entry("x", "hay", "bales", None)])
        assert exc_info.value.code == "MISSING_WEIGHT_PER_UNIT"


class TestResolveFeed:

    def test_count_unit_converts_to_kg(self, inventory):
        resolution = resolve_feed_from_entries("hay", FeedUnit.BAGS, 5, inventory)
        assert resolution.feed_type == "hay"
        assert resolution.weight_per_unit == 50.0
        assert resolution.kilograms == 250.0
        assert resolution.inventory_entry_id == "hay-old"

    def test_direct_unit_bypasses_conversion(self, inventory):
        resolution = resolve_feed_from_entries("corn silage", FeedUnit.KG, 30, inventory)
        assert resolution.kilograms == 30
        assert resolution.weight_per_unit is None
        assert resolution.unit == "kg"

    def test_missing_unit_defaults_to_kg(self, inventory):
        resolution = resolve_feed_from_entries("corn silage", None, 12, inventory)
        assert resolution.unit == "kg"
        assert resolution.kilograms == 12

    def test_unknown_type_single_candidate(self, inventory):
        resolution = resolve_feed_from_entries("unknown", FeedUnit.BARRELS, 2, inventory)
        assert resolution.feed_type == "Pellets"
        assert resolution.kilograms == 160.0
        assert resolution.strategy == INVENTORY_UNIT_STRATEGY

    def test_unknown_type_several_candidates(self, inventory):
        with pytest.raises(AmbiguousReferenceError) as exc_info:
            resolve_feed_from_entries(None, FeedUnit.BAGS, 2, inventory)
        assert exc_info.value.code == "NEEDS_CLARIFICATION"
        assert exc_info.value.options == ["hay", "Rice Bran"]

    def test_unknown_type_no_candidates(self, inventory):
        with pytest.raises(InventoryAbsenceError) as exc_info:
            resolve_feed_from_entries("unknown", FeedUnit.BALES, 2, inventory)
        assert exc_info.value.code == "NO_INVENTORY_FOR_UNIT"

    def test_resolution_is_deterministic(self, inventory):
        first = resolve_feed_from_entries("hay", FeedUnit.BAGS, 3, inventory)
        second = resolve_feed_from_entries("hay", FeedUnit.BAGS, 3, inventory)
        assert first == second


class StaticSource:
    def __init__(self, entries, delay=0.0):
        self.entries = entries
        self.delay = delay
        self.calls = []

    def list_feed_inventory(self, farm_id, in_stock_only=True):
        self.calls.append((farm_id, in_stock_only))
        if self.delay:
            time.sleep(self.delay)
        return [e for e in self.entries if not in_stock_only or e.quantity_kg > 0]


class TestInventoryResolver:

    def test_resolve_reads_in_stock_inventory(self, inventory):
        source = StaticSource(inventory)
        resolution = asyncio.run(InventoryResolver(source).resolve("farm-1", "hay", FeedUnit.BAGS, 2))
        assert resolution.kilograms == 100.0
        assert source.calls == [("farm-1", True)]

    def test_store_timeout_is_retryable(self, inventory):
        resolver = InventoryResolver(StaticSource(inventory, delay=0.5), timeout_seconds=0.05)
        with pytest.raises(UpstreamTimeoutError) as exc_info:
            asyncio.run(resolver.resolve("farm-1", "hay", FeedUnit.BAGS, 2))
        assert exc_info.value.retryable

    def test_seeded_store(self, store):
        resolution = asyncio.run(InventoryResolver(store).resolve("farm-1", "Hay", FeedUnit.BAGS, 5))
        assert resolution.feed_type == "hay"
        assert resolution.kilograms == 250.0
