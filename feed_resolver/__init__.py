"""Feed Resolver Module.

Canonicalizes spoken feed types against the farm's inventory and converts
count units (bales, bags, barrels) to kilograms using first-in-first-out
per-unit weights.
"""

from feed_resolver.normalize import normalize_feed_type, singularize
from feed_resolver.resolver import (
    DIRECT_STRATEGY,
    INVENTORY_UNIT_STRATEGY,
    FeedInventorySource,
    FeedResolution,
    InventoryResolver,
    canonicalize_feed_type,
    oldest_weight_per_unit,
    resolve_feed_from_entries,
    resolve_unknown_feed_type,
)
from feed_resolver.strategies import (
    DEFAULT_STRATEGIES,
    ExactMatch,
    MatchStrategy,
    NormalizedMatch,
    SubstringMatch,
)

__all__ = [
    "normalize_feed_type",
    "singularize",
    "DIRECT_STRATEGY",
    "INVENTORY_UNIT_STRATEGY",
    "FeedInventorySource",
    "FeedResolution",
    "InventoryResolver",
    "canonicalize_feed_type",
    "oldest_weight_per_unit",
    "resolve_feed_from_entries",
    "resolve_unknown_feed_type",
    "DEFAULT_STRATEGIES",
    "ExactMatch",
    "MatchStrategy",
    "NormalizedMatch",
    "SubstringMatch",
]
