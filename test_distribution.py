"""Tests for weight-proportional feed distribution."""

from datetime import date

import pytest

from core.errors import DistributionError
from distribution import FeedDistributionRequest, distribute_feed, distribute_feeds, eligible_animals
from models.activity import Animal


def animal(animal_id, weight, entry=None, deleted=False):
    return Animal(
        id=animal_id,
        farm_id="farm-1",
        name=animal_id.title(),
        current_weight_kg=weight,
        farm_entry_date=entry,
        is_deleted=deleted,
    )


@pytest.fixture
def herd():
    return [
        animal("big", 400.0),
        animal("small", 200.0),
        animal("unweighed", None),
        animal("zero", 0.0),
        animal("gone", 500.0, deleted=True),
        animal("late", 300.0, entry=date(2026, 3, 10)),
    ]


class TestEligibility:

    def test_excludes_unweighed_and_deleted(self, herd):
        assert [a.id for a in eligible_animals(herd)] == ["big", "small", "late"]

    def test_excludes_animals_not_yet_on_farm(self, herd):
        assert [a.id for a in eligible_animals(herd, date(2026, 3, 9))] == ["big", "small"]


class TestDistributeFeed:

    def test_shares_sum_to_total(self, herd):
        plan = distribute_feed("hay", 250.0, herd, quantity=5, unit="bags", weight_per_unit=50.0)
        assert sum(s.feed_kg for s in plan.shares) == pytest.approx(250.0)
        assert sum(s.proportion for s in plan.shares) == pytest.approx(1.0)
        assert plan.total_animal_weight_kg == 900.0

    def test_double_weight_gets_double_share(self, herd):
        plan = distribute_feed("hay", 90.0, herd)
        shares = {s.animal_id: s.feed_kg for s in plan.shares}
        assert shares["big"] == pytest.approx(2 * shares["small"])
        assert shares["big"] == pytest.approx(40.0)
        assert "unweighed" not in shares

    def test_record_date_limits_herd(self, herd):
        plan = distribute_feed("hay", 60.0, herd, record_date=date(2026, 3, 1))
        assert plan.animal_ids == ["big", "small"]
        assert plan.shares[0].feed_kg == pytest.approx(40.0)

    def test_plan_is_deterministic(self, herd):
        assert distribute_feed("hay", 77.7, herd) == distribute_feed("hay", 77.7, herd)

    def test_no_eligible_animals(self):
        with pytest.raises(DistributionError) as exc_info:
            distribute_feed("hay", 100.0, [animal("unweighed", None)])
        assert exc_info.value.code == "NO_ELIGIBLE_ANIMALS"

    def test_non_positive_total(self, herd):
        with pytest.raises(DistributionError) as exc_info:
            distribute_feed("hay", 0, herd)
        assert exc_info.value.code == "INVALID_FEED_TOTAL"


class TestMultiFeed:

    def test_each_feed_type_distributed_independently(self, herd):
        plans = distribute_feeds(
            [
                FeedDistributionRequest(feed_type="hay", total_kg=250.0, quantity=5, unit="bags", weight_per_unit=50.0),
                FeedDistributionRequest(feed_type="corn silage", total_kg=30.0, unit="kg"),
            ],
            herd,
            record_date=date(2026, 3, 11),
        )
        assert [p.feed_type for p in plans] == ["hay", "corn silage"]
        for plan, total in zip(plans, (250.0, 30.0)):
            assert plan.animal_ids == ["big", "small", "late"]
            assert sum(s.feed_kg for s in plan.shares) == pytest.approx(total)
