"""Feed type matching strategies.

Each strategy returns the inventory feed types it accepts for a requested
name, oldest inventory first. The resolver walks the chain in order and the
first strategy with any match decides.
"""

from typing import List, Protocol

from feed_resolver.normalize import normalize_feed_type


class MatchStrategy(Protocol):
    """One stage of feed type canonicalization."""

    name: str

    def match(self, requested: str, feed_types: List[str]) -> List[str]:
        ...


class ExactMatch:
    """Case-insensitive equality."""

    name = "exact"

    def match(self, requested: str, feed_types: List[str]) -> List[str]:
        wanted = requested.strip().lower()
        return [ft for ft in feed_types if ft.strip().lower() == wanted]


class NormalizedMatch:
    """Equality after whitespace collapsing and plural folding."""

    name = "normalized"

    def match(self, requested: str, feed_types: List[str]) -> List[str]:
        wanted = normalize_feed_type(requested)
        return [ft for ft in feed_types if normalize_feed_type(ft) == wanted]


class SubstringMatch:
    """Normalized containment in either direction ("silage" ~ "corn silage")."""

    name = "substring"

    def __init__(self, min_length: int = 2):
        self.min_length = min_length

    def match(self, requested: str, feed_types: List[str]) -> List[str]:
        wanted = normalize_feed_type(requested)
        if len(wanted) < self.min_length:
            return []
        matches = []
        for ft in feed_types:
            candidate = normalize_feed_type(ft)
            if len(candidate) < self.min_length:
                continue
            if wanted in candidate or candidate in wanted:
                matches.append(ft)
        return matches


DEFAULT_STRATEGIES: List[MatchStrategy] = [ExactMatch(), NormalizedMatch(), SubstringMatch()]
