"""Inventory Resolver Algorithm.

Turns a spoken feed reference into a canonical feed type and a mass in
kilograms:

1. Canonicalize the feed type against in-stock inventory (exact, then
   normalized, then substring). Nothing matching is a hard stop.
2. For count units (bales/bags/barrels), look up the per-unit weight of the
   oldest in-stock entry for that feed type and unit (first in, first out).
3. An unspecified or "unknown" feed type with a count unit is resolved from
   inventory alone when exactly one feed type is stocked in that unit.
4. Direct units (kg/liters) bypass conversion.

Resolution only reads inventory; stock levels are never changed here.
"""

import asyncio
from typing import List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel

from core.errors import AmbiguousReferenceError, InventoryAbsenceError, UpstreamTimeoutError
from core.observability.logging import get_logger
from feed_resolver.normalize import normalize_feed_type
from feed_resolver.strategies import DEFAULT_STRATEGIES, MatchStrategy
from models.activity import COUNT_UNITS, UNKNOWN_FEED_TYPE, FeedInventoryEntry, FeedUnit


logger = get_logger(__name__)

INVENTORY_UNIT_STRATEGY = "inventory_unit"
DIRECT_STRATEGY = "direct"


class FeedInventorySource(Protocol):
    """Read access to a farm's feed inventory."""

    def list_feed_inventory(self, farm_id: str, in_stock_only: bool = True) -> List[FeedInventoryEntry]:
        """Inventory rows for a farm, oldest first."""
        ...


class FeedResolution(BaseModel):
    """Resolved feed reference."""
    requested_feed_type: Optional[str] = None
    feed_type: str
    unit: Optional[str] = None
    quantity: float
    weight_per_unit: Optional[float] = None
    kilograms: float
    strategy: str
    inventory_entry_id: Optional[str] = None


def _distinct_feed_types(entries: Sequence[FeedInventoryEntry]) -> List[str]:
    """Distinct feed types in entry order, one spelling per normalized name."""
    seen = set()
    result = []
    for entry in entries:
        key = normalize_feed_type(entry.feed_type)
        if key and key not in seen:
            seen.add(key)
            result.append(entry.feed_type)
    return result


def feed_type_not_in_inventory(feed_type: str) -> InventoryAbsenceError:
    return InventoryAbsenceError(
        f'Ang "{feed_type}" ay wala sa inyong inventory. Mangyaring magdagdag muna ng '
        "stock o sabihin ang ibang uri ng pagkain.",
        f'"{feed_type}" is not in your feed inventory. Please add stock first or '
        "specify a different feed type.",
        code="FEED_TYPE_NOT_IN_INVENTORY",
    )


def canonicalize_feed_type(
    requested: str,
    entries: Sequence[FeedInventoryEntry],
    strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
) -> Tuple[str, str]:
    """Map a requested feed name onto an inventory feed type.

    Returns:
        (canonical feed type, name of the strategy that matched)

    Raises:
        AmbiguousReferenceError: A stage matched several distinct feed types
        InventoryAbsenceError: No stage matched
    """
    feed_types = _distinct_feed_types(entries)
    for strategy in strategies:
        matches = strategy.match(requested, feed_types)
        if not matches:
            continue
        if len(matches) > 1:
            raise AmbiguousReferenceError(
                f'Maraming uri ng pagkain ang tugma sa "{requested}". Alin ang ginamit ninyo? '
                f"Mga pagpipilian: {', '.join(matches)}",
                f'Several feed types match "{requested}". Which one did you use? '
                f"Options: {', '.join(matches)}",
                options=matches,
            )
        if strategy.name != "exact":
            logger.info(
                f"Feed type '{requested}' resolved to '{matches[0]}' via {strategy.name} match",
                extra_fields={"strategy": strategy.name},
            )
        return matches[0], strategy.name

    raise feed_type_not_in_inventory(requested)


def oldest_weight_per_unit(
    feed_type: str,
    unit: str,
    entries: Sequence[FeedInventoryEntry],
) -> Tuple[float, str]:
    """Per-unit weight of the oldest in-stock entry for (feed type, unit).

    Returns:
        (weight per unit in kg, inventory entry id)
    """
    wanted = normalize_feed_type(feed_type)
    matching = [
        e for e in entries
        if normalize_feed_type(e.feed_type) == wanted and e.unit == unit and e.quantity_kg > 0
    ]
    matching.sort(key=lambda e: e.created_at)

    if not matching:
        raise InventoryAbsenceError(
            f'Walang stock ng "{feed_type}" na naka-{unit} sa inventory.',
            f'No in-stock "{feed_type}" inventory recorded in {unit}.',
            code="NO_INVENTORY_FOR_UNIT",
        )

    oldest = matching[0]
    if not oldest.weight_per_unit or oldest.weight_per_unit <= 0:
        raise InventoryAbsenceError(
            f'Walang timbang bawat {unit} para sa "{feed_type}" sa inventory.',
            f'The inventory entry for "{feed_type}" has no weight per {unit}.',
            code="MISSING_WEIGHT_PER_UNIT",
        )
    return oldest.weight_per_unit, oldest.id


def resolve_unknown_feed_type(unit: Optional[FeedUnit], entries: Sequence[FeedInventoryEntry]) -> str:
    """Pick the feed type from inventory when none was stated.

    Raises:
        AmbiguousReferenceError: Several feed types are possible
        InventoryAbsenceError: Nothing is stocked in that unit
    """
    if unit in COUNT_UNITS:
        for_unit = [e for e in entries if e.unit == unit.value and e.quantity_kg > 0]
        options = _distinct_feed_types(sorted(for_unit, key=lambda e: e.created_at))
        if len(options) == 1:
            return options[0]
        if not options:
            raise InventoryAbsenceError(
                f"Walang pagkain na naka-{unit.value} sa inventory. Magdagdag muna ng stock.",
                f"No feed stocked in {unit.value}. Please add inventory first.",
                code="NO_INVENTORY_FOR_UNIT",
            )
        raise AmbiguousReferenceError(
            f"Anong uri ng pagkain ang ginamit ninyo? Mga pagpipilian: {', '.join(options)}",
            f"Which feed type did you use? Options: {', '.join(options)}",
            options=options,
        )

    options = _distinct_feed_types(sorted(
        (e for e in entries if e.quantity_kg > 0), key=lambda e: e.created_at
    ))
    if not options:
        raise InventoryAbsenceError(
            "Walang pagkain sa inventory. Magdagdag muna ng stock.",
            "There is no feed in your inventory. Please add stock first.",
            code="NO_FEED_INVENTORY",
        )
    raise AmbiguousReferenceError(
        f"Anong uri ng pagkain ang ginamit ninyo? Mga pagpipilian: {', '.join(options)}",
        f"Which feed type did you use? Options: {', '.join(options)}",
        options=options,
    )


def resolve_feed_from_entries(
    feed_type: Optional[str],
    unit: Optional[FeedUnit],
    quantity: float,
    entries: Sequence[FeedInventoryEntry],
    strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
) -> FeedResolution:
    """Resolve a feed reference against an inventory snapshot."""
    stated = feed_type is not None and feed_type.strip().lower() != UNKNOWN_FEED_TYPE

    if stated:
        canonical, strategy = canonicalize_feed_type(feed_type, entries, strategies)
    else:
        canonical = resolve_unknown_feed_type(unit, entries)
        strategy = INVENTORY_UNIT_STRATEGY
        logger.info(
            f"Unspecified feed type resolved from {unit.value} inventory: '{canonical}'",
            extra_fields={"strategy": strategy},
        )

    if unit in COUNT_UNITS:
        weight, entry_id = oldest_weight_per_unit(canonical, unit.value, entries)
        return FeedResolution(
            requested_feed_type=feed_type,
            feed_type=canonical,
            unit=unit.value,
            quantity=quantity,
            weight_per_unit=weight,
            kilograms=quantity * weight,
            strategy=strategy,
            inventory_entry_id=entry_id,
        )

    return FeedResolution(
        requested_feed_type=feed_type,
        feed_type=canonical,
        unit=unit.value if unit else FeedUnit.KG.value,
        quantity=quantity,
        kilograms=quantity,
        strategy=strategy if stated else DIRECT_STRATEGY,
    )


class InventoryResolver:
    """Resolves feed references against a farm's inventory.

    Store reads run in a worker thread and are bounded by timeout_seconds,
    so independent resolutions can be awaited concurrently.
    """

    def __init__(
        self,
        source: FeedInventorySource,
        timeout_seconds: float = 10.0,
        strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
    ):
        self.source = source
        self.timeout_seconds = timeout_seconds
        self.strategies = list(strategies)

    async def load_inventory(self, farm_id: str) -> List[FeedInventoryEntry]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.source.list_feed_inventory, farm_id, True),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise UpstreamTimeoutError("data store")

    async def resolve(
        self,
        farm_id: str,
        feed_type: Optional[str],
        unit: Optional[FeedUnit],
        quantity: float,
    ) -> FeedResolution:
        """Resolve one feed reference for a farm."""
        entries = await self.load_inventory(farm_id)
        return resolve_feed_from_entries(feed_type, unit, quantity, entries, self.strategies)
