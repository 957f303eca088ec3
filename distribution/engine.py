"""Herd-wide proportional feed distribution.

Each eligible animal receives total_kg * weight / sum(weights). Animals
without a positive recorded weight are left out. Shares keep roster order
and are not rounded, so the same roster always yields the same plan.
"""

from datetime import date
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from core.errors import DistributionError
from models.activity import Animal, AnimalShare, DistributionPlan


class FeedDistributionRequest(BaseModel):
    """One feed type to split across the herd."""
    feed_type: str
    total_kg: float
    quantity: Optional[float] = None
    unit: Optional[str] = None
    weight_per_unit: Optional[float] = None


def eligible_animals(animals: Iterable[Animal], record_date: Optional[date] = None) -> List[Animal]:
    """Animals that can receive a share.

    Deleted animals, animals without a positive weight, and (when a record
    date is given) animals that entered the farm after that date are excluded.
    """
    eligible = []
    for animal in animals:
        if animal.is_deleted:
            continue
        if not animal.current_weight_kg or animal.current_weight_kg <= 0:
            continue
        if record_date and animal.farm_entry_date and animal.farm_entry_date > record_date:
            continue
        eligible.append(animal)
    return eligible


def no_eligible_animals_error() -> DistributionError:
    return DistributionError(
        "Walang hayop na may naitalang timbang para hatian ng pagkain.",
        "No animals with a recorded weight are available for feed distribution.",
    )


def distribute_feed(
    feed_type: str,
    total_kg: float,
    animals: Sequence[Animal],
    quantity: Optional[float] = None,
    unit: Optional[str] = None,
    weight_per_unit: Optional[float] = None,
    record_date: Optional[date] = None,
) -> DistributionPlan:
    """Split total_kg of one feed type across the eligible herd.

    Raises:
        DistributionError: No eligible animals or a non-positive total
    """
    if total_kg <= 0:
        raise DistributionError(
            "Dapat higit sa zero ang dami ng pagkain.",
            "Feed quantity must be greater than zero.",
            code="INVALID_FEED_TOTAL",
        )

    herd = eligible_animals(animals, record_date)
    total_weight = sum(a.current_weight_kg for a in herd)
    if not herd or total_weight <= 0:
        raise no_eligible_animals_error()

    shares = []
    for animal in herd:
        proportion = animal.current_weight_kg / total_weight
        shares.append(AnimalShare(
            animal_id=animal.id,
            animal_name=animal.name,
            ear_tag=animal.ear_tag,
            weight_kg=animal.current_weight_kg,
            proportion=proportion,
            feed_kg=total_kg * proportion,
        ))

    return DistributionPlan(
        feed_type=feed_type,
        total_kg=total_kg,
        quantity=quantity,
        unit=unit,
        weight_per_unit=weight_per_unit,
        total_animal_weight_kg=total_weight,
        shares=shares,
    )


def distribute_feeds(
    requests: Sequence[FeedDistributionRequest],
    animals: Sequence[Animal],
    record_date: Optional[date] = None,
) -> List[DistributionPlan]:
    """Distribute several feed types independently over the same herd."""
    return [
        distribute_feed(
            r.feed_type,
            r.total_kg,
            animals,
            quantity=r.quantity,
            unit=r.unit,
            weight_per_unit=r.weight_per_unit,
            record_date=record_date,
        )
        for r in requests
    ]
