"""Animal Resolver Algorithm.

Maps a spoken animal reference ("A002", "si Bessie", "A002 Bessie") to one
farm-owned animal. Every roster entry is scored and the best score wins:

1. Exact match of ear tag or name against the whole identifier (100)
2. Ear tag contained in the identifier (90)
3. Name contained in the identifier (85)
4. Identifier contained in the ear tag (70)
5. Identifier contained in the name (65)

Scores below the acceptance threshold, identifiers that are too short, and
ties at the best score never produce a match. The resolver never guesses.
"""

from typing import Iterable, List, Optional, Tuple

from animal_resolver.models import (
    AnimalCandidate,
    AnimalResolution,
    MatchType,
    MatchingConfig,
    DEFAULT_MATCHING_CONFIG,
)
from models.activity import Animal


def normalize_identifier(value: Optional[str]) -> str:
    """Lower-case, trim and collapse whitespace."""
    if not value:
        return ""
    return " ".join(value.lower().split())


class AnimalResolver:
    """Resolves spoken identifiers against a farm's animal roster.

    Example:
        resolver = AnimalResolver()
        resolution = resolver.resolve("A002 Bessie", roster)

        if resolution.is_matched:
            print(f"Matched: {resolution.animal_id}")
        elif resolution.is_ambiguous:
            print(f"Pick one of {len(resolution.candidates)} animals")
    """

    def __init__(self, config: MatchingConfig = DEFAULT_MATCHING_CONFIG):
        self.config = config

    def resolve(self, identifier: Optional[str], roster: Iterable[Animal]) -> AnimalResolution:
        """Resolve an identifier to a single animal.

        Args:
            identifier: Free-text animal reference from the transcription
            roster: The farm's animals

        Returns:
            AnimalResolution with the match, the tied candidates, or neither
        """
        normalized = normalize_identifier(identifier)

        if len(normalized) < self.config.min_identifier_length:
            return AnimalResolution(
                identifier=identifier,
                reasons=[
                    f"Identifier '{identifier or ''}' shorter than "
                    f"{self.config.min_identifier_length} characters"
                ],
            )

        candidates = [
            c for c in self._score_roster(normalized, roster)
            if c.score >= self.config.acceptance_threshold
        ]
        # Stable sort keeps roster order among equal scores
        candidates.sort(key=lambda c: c.score, reverse=True)

        if not candidates:
            return AnimalResolution(
                identifier=identifier,
                reasons=[f"No animal scored at least {self.config.acceptance_threshold}"],
            )

        best = candidates[0]
        tied = [c for c in candidates if c.score == best.score]

        if len(tied) > 1:
            return AnimalResolution(
                is_ambiguous=True,
                identifier=identifier,
                match_type=best.match_type,
                score=best.score,
                candidates=tied[:self.config.max_candidates],
                reasons=[f"{len(tied)} animals tied at score {best.score}"],
            )

        return AnimalResolution(
            is_matched=True,
            animal_id=best.animal_id,
            identifier=identifier,
            match_type=best.match_type,
            score=best.score,
            candidates=[best],
            reasons=best.reasons,
        )

    def _score_roster(self, identifier: str, roster: Iterable[Animal]) -> List[AnimalCandidate]:
        candidates = []
        for animal in roster:
            if animal.is_deleted:
                continue
            tag = normalize_identifier(animal.ear_tag)
            name = normalize_identifier(animal.name)
            if not tag and not name:
                continue

            score, match_type, reason = self._score_fields(identifier, tag, name)
            if score == 0:
                continue

            candidates.append(AnimalCandidate(
                animal_id=animal.id,
                name=animal.name,
                ear_tag=animal.ear_tag,
                score=score,
                match_type=match_type,
                reasons=[reason],
            ))
        return candidates

    def _score_fields(self, identifier: str, tag: str, name: str) -> Tuple[int, MatchType, str]:
        """Highest-scoring rule that applies to one animal."""
        cfg = self.config
        min_len = cfg.min_identifier_length

        if identifier in (tag, name):
            field = "ear tag" if identifier == tag else "name"
            return cfg.exact_score, MatchType.EXACT, f"Exact {field} match: '{identifier}'"

        if len(tag) >= min_len and tag in identifier:
            return cfg.tag_in_identifier_score, MatchType.TAG_IN_IDENTIFIER, \
                f"Ear tag '{tag}' found in '{identifier}'"

        if len(name) >= min_len and name in identifier:
            return cfg.name_in_identifier_score, MatchType.NAME_IN_IDENTIFIER, \
                f"Name '{name}' found in '{identifier}'"

        if tag and identifier in tag:
            return cfg.identifier_in_tag_score, MatchType.IDENTIFIER_IN_TAG, \
                f"'{identifier}' is part of ear tag '{tag}'"

        if name and identifier in name:
            return cfg.identifier_in_name_score, MatchType.IDENTIFIER_IN_NAME, \
                f"'{identifier}' is part of name '{name}'"

        return 0, MatchType.NO_MATCH, ""

    def explain_resolution(self, resolution: AnimalResolution) -> str:
        """Generate a human-readable explanation of the resolution."""
        lines = ["=" * 60, "Animal Resolution Explanation", "=" * 60]
        lines.append(f"Identifier: '{resolution.identifier}'")

        if resolution.is_matched:
            lines.append(f"MATCHED to: {resolution.animal_id}")
            lines.append(f"  Match type: {resolution.match_type.value}")
            lines.append(f"  Score: {resolution.score}")
        elif resolution.is_ambiguous:
            lines.append("AMBIGUOUS - needs selection")
        else:
            lines.append("NO MATCH")

        lines.append("")
        lines.append("Reasons:")
        for reason in resolution.reasons:
            lines.append(f"  - {reason}")

        if resolution.candidates and not resolution.is_matched:
            lines.append("")
            lines.append("Candidates:")
            for i, c in enumerate(resolution.candidates):
                lines.append(f"  {i+1}. {c.label} score={c.score} ({c.match_type.value})")

        lines.append("=" * 60)
        return "\n".join(lines)
