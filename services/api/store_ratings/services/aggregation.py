"""Rating aggregate computation.

A store's average rating and rating count are never stored; they are
recomputed from the ratings table on every read. No caching.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from store_ratings.stores.gateway import PersistenceGateway


@dataclass(frozen=True)
class RatingAggregate:
    """Average and count of a store's ratings."""

    average_rating: float
    total_ratings: int


EMPTY_AGGREGATE = RatingAggregate(average_rating=0.0, total_ratings=0)


def aggregate_ratings(values: Iterable[int]) -> RatingAggregate:
    """Summarize a set of rating values.

    Args:
        values: Rating values (1-5) currently stored for one store.

    Returns:
        Mean and count; average is 0.0 when there are no ratings.
    """
    values = list(values)
    if not values:
        return EMPTY_AGGREGATE
    return RatingAggregate(
        average_rating=sum(values) / len(values),
        total_ratings=len(values),
    )


async def get_store_aggregate(gateway: PersistenceGateway, store_id: int) -> RatingAggregate:
    """Compute the aggregate for one store from the gateway."""
    total = await gateway.count_ratings_for_store(store_id)
    if total == 0:
        return EMPTY_AGGREGATE
    average = await gateway.average_rating_for_store(store_id)
    return RatingAggregate(average_rating=float(average), total_ratings=total)
