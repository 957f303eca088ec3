"""Animal Resolver Module.

Resolves spoken animal references (ear tag, name, or both) to a single
farm-owned animal using scored matching.

Usage:
    from animal_resolver import AnimalResolver

    resolution = AnimalResolver().resolve("A002 Bessie", roster)
"""

from animal_resolver.models import (
    AnimalCandidate,
    AnimalResolution,
    MatchType,
    MatchingConfig,
    DEFAULT_MATCHING_CONFIG,
)
from animal_resolver.resolver import AnimalResolver, normalize_identifier

__all__ = [
    "AnimalCandidate",
    "AnimalResolution",
    "AnimalResolver",
    "MatchType",
    "MatchingConfig",
    "DEFAULT_MATCHING_CONFIG",
    "normalize_identifier",
]
