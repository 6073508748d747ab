"""Rating submission service.

One rating per (user, store): a repeated submission overwrites the
existing row in place instead of appending a new one.

The lookup-then-write sequence is not atomic. Two concurrent submissions
for the same pair race and the last write wins: an insert that loses to
a concurrent first submission overwrites that row instead.
"""

import logging
from dataclasses import dataclass

from store_ratings.errors import AuthorizationError, ConstraintError, NotFoundError
from store_ratings.services.authorization import ActingUser, Role
from store_ratings.stores.gateway import PersistenceGateway, RatingRecord, StoreRecord

logger = logging.getLogger("uvicorn.error")

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class RatingResult:
    """Outcome of a rating submission."""

    id: int
    user_id: int
    store_id: int
    rating: int
    created: bool


def validate_rating_value(value: object) -> int:
    """Check a rating is an integer in [1, 5].

    Raises:
        ConstraintError: If the value is not an int in range (bools rejected).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConstraintError("Rating must be an integer", detail={"rating": value})
    if not MIN_RATING <= value <= MAX_RATING:
        raise ConstraintError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            detail={"rating": value},
        )
    return value


async def submit_or_update_rating(
    gateway: PersistenceGateway,
    user_id: int,
    store_id: int,
    value: int,
) -> RatingResult:
    """Create the user's rating for a store, or overwrite the existing one.

    Args:
        gateway: Persistence gateway.
        user_id: Rating author.
        store_id: Rated store.
        value: Star value (1-5).

    Returns:
        The rating id (kept on overwrite) and stored value.

    Raises:
        ConstraintError: If value is out of range.
        NotFoundError: If the store does not exist.
    """
    validate_rating_value(value)

    store = await gateway.find_store_by_id(store_id)
    if store is None:
        raise NotFoundError(f"Store {store_id} not found", detail={"store_id": store_id})

    existing = await gateway.find_rating_by_user_and_store(user_id, store_id)
    if existing is not None:
        await gateway.update_rating_value(existing.id, value)
        logger.info(
            "[ratings] updated rating_id=%s user_id=%s store_id=%s value=%s",
            existing.id,
            user_id,
            store_id,
            value,
        )
        return RatingResult(id=existing.id, user_id=user_id, store_id=store_id, rating=value, created=False)

    rating_id = await gateway.insert_rating(user_id, store_id, value)
    logger.info(
        "[ratings] created rating_id=%s user_id=%s store_id=%s value=%s",
        rating_id,
        user_id,
        store_id,
        value,
    )
    return RatingResult(id=rating_id, user_id=user_id, store_id=store_id, rating=value, created=True)


async def _get_rating(gateway: PersistenceGateway, rating_id: int) -> RatingRecord:
    rating = await gateway.find_rating_by_id(rating_id)
    if rating is None:
        raise NotFoundError(f"Rating {rating_id} not found", detail={"rating_id": rating_id})
    return rating


async def update_rating(
    gateway: PersistenceGateway,
    rating_id: int,
    value: int,
    acting_user: ActingUser,
) -> RatingResult:
    """Change the value of an existing rating. Only its author may."""
    validate_rating_value(value)
    rating = await _get_rating(gateway, rating_id)
    if rating.user_id != acting_user.id:
        raise AuthorizationError("You can only change your own ratings", detail={"rating_id": rating_id})

    await gateway.update_rating_value(rating.id, value)
    logger.info("[ratings] updated rating_id=%s user_id=%s value=%s", rating.id, acting_user.id, value)
    return RatingResult(
        id=rating.id,
        user_id=rating.user_id,
        store_id=rating.store_id,
        rating=value,
        created=False,
    )


async def delete_rating(
    gateway: PersistenceGateway,
    rating_id: int,
    acting_user: ActingUser,
) -> None:
    """Delete a rating. Allowed for its author and for admins."""
    rating = await _get_rating(gateway, rating_id)
    if acting_user.role is not Role.ADMIN and rating.user_id != acting_user.id:
        raise AuthorizationError("You can only delete your own ratings", detail={"rating_id": rating_id})

    await gateway.delete_rating(rating.id)
    logger.info("[ratings] deleted rating_id=%s by user_id=%s", rating.id, acting_user.id)


async def list_user_ratings(gateway: PersistenceGateway, user_id: int) -> list[RatingRecord]:
    """Get a user's ratings with store name and address, newest first."""
    return await gateway.list_ratings_for_user(user_id)


async def get_store_with_user_rating(
    gateway: PersistenceGateway,
    store_id: int,
    user_id: int,
) -> tuple[StoreRecord, int | None]:
    """Get a store together with the caller's own rating value, if any."""
    store = await gateway.find_store_by_id(store_id)
    if store is None:
        raise NotFoundError(f"Store {store_id} not found", detail={"store_id": store_id})
    rating = await gateway.find_rating_by_user_and_store(user_id, store_id)
    return store, rating.rating if rating else None
