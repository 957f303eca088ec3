"""Animal Resolver Data Models.

This module defines the Pydantic models for animal resolution:
- MatchType: Which field and rule produced the score
- AnimalCandidate: A scored roster entry
- AnimalResolution: The result of resolving one spoken identifier
- MatchingConfig: Scores and thresholds
"""

from typing import List, Optional

from enum import Enum

from pydantic import BaseModel, Field


class MatchType(str, Enum):
    """How the animal was matched."""
    EXACT = "exact"                          # Identifier equals ear tag or name
    TAG_IN_IDENTIFIER = "tag_in_identifier"  # "A002 Bessie" contains "A002"
    NAME_IN_IDENTIFIER = "name_in_identifier"
    IDENTIFIER_IN_TAG = "identifier_in_tag"  # Truncated tag
    IDENTIFIER_IN_NAME = "identifier_in_name"
    NO_MATCH = "no_match"


class AnimalCandidate(BaseModel):
    """A roster animal with its match score."""
    animal_id: str
    name: Optional[str] = None
    ear_tag: Optional[str] = None
    score: int = 0
    match_type: MatchType = MatchType.NO_MATCH
    reasons: List[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        if self.name and self.ear_tag:
            return f"{self.name} ({self.ear_tag})"
        return self.name or self.ear_tag or self.animal_id


class AnimalResolution(BaseModel):
    """Result of animal resolution.

    If is_matched is True, animal_id holds the single matched animal.
    If is_ambiguous is True, candidates holds the animals tied for the best
    score so the caller can ask the user to pick one.
    """
    is_matched: bool = False
    is_ambiguous: bool = False
    animal_id: Optional[str] = None
    match_type: MatchType = MatchType.NO_MATCH
    score: int = 0
    identifier: Optional[str] = None
    candidates: List[AnimalCandidate] = Field(default_factory=list)
    reasons: List[str] = Field(default_factory=list)


class MatchingConfig(BaseModel):
    """Configuration for the animal matching algorithm."""
    exact_score: int = Field(default=100)
    tag_in_identifier_score: int = Field(default=90)
    name_in_identifier_score: int = Field(default=85)
    identifier_in_tag_score: int = Field(default=70)
    identifier_in_name_score: int = Field(default=65)

    # Best score must reach this to count as a match
    acceptance_threshold: int = Field(default=60)

    # Identifiers (and roster fields used for containment) shorter than this are ignored
    min_identifier_length: int = Field(default=2)

    max_candidates: int = Field(default=5)


DEFAULT_MATCHING_CONFIG = MatchingConfig()
