"""Distribution Module - weight-proportional bulk feed allocation."""

from distribution.engine import (
    FeedDistributionRequest,
    distribute_feed,
    distribute_feeds,
    eligible_animals,
)

__all__ = [
    "FeedDistributionRequest",
    "distribute_feed",
    "distribute_feeds",
    "eligible_animals",
]
