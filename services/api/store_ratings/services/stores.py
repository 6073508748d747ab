"""Store catalogue service.

Creation and deletion are admin actions (enforced by routes). Listing and
lookup are public. Owners get a dashboard with their store's ratings.
"""

import logging
from dataclasses import dataclass

from store_ratings.errors import AuthorizationError, NotFoundError
from store_ratings.services.authorization import ActingUser, Role
from store_ratings.services.store_policy import ensure_assignable_owner, ensure_unique_store_identity
from store_ratings.stores.gateway import PersistenceGateway, RatingRecord, StoreFilters, StoreRecord

logger = logging.getLogger("uvicorn.error")


@dataclass
class OwnerDashboard:
    """A store owner's view of their store."""

    store: StoreRecord
    ratings: list[RatingRecord]


async def get_store(gateway: PersistenceGateway, store_id: int) -> StoreRecord:
    """Get a store with its rating aggregate.

    Raises:
        NotFoundError: If the store does not exist.
    """
    store = await gateway.find_store_by_id(store_id)
    if store is None:
        raise NotFoundError(f"Store {store_id} not found", detail={"store_id": store_id})
    return store


async def create_store(
    gateway: PersistenceGateway,
    *,
    name: str,
    email: str,
    address: str,
    owner_id: int | None,
) -> StoreRecord:
    """Create a store, optionally assigned to a store owner.

    Raises:
        ConflictError: If another store uses the name or email.
        ConstraintError: If the owner is not an available store_owner.
    """
    await ensure_unique_store_identity(gateway, name=name, email=email)
    if owner_id is not None:
        await ensure_assignable_owner(gateway, owner_id)

    store_id = await gateway.insert_store(name=name, email=email, address=address, owner_id=owner_id)
    logger.info("[stores] created store_id=%s owner_id=%s", store_id, owner_id)
    return await get_store(gateway, store_id)


async def list_stores(gateway: PersistenceGateway, filters: StoreFilters) -> list[StoreRecord]:
    """List stores with aggregates, filtered and sorted."""
    return await gateway.list_stores(filters)


async def count_stores(gateway: PersistenceGateway, filters: StoreFilters) -> int:
    """Count stores matching the filters, ignoring paging."""
    return await gateway.count_stores(filters)


async def delete_store(gateway: PersistenceGateway, store_id: int) -> None:
    """Delete a store and, by cascade, its ratings."""
    deleted = await gateway.delete_store(store_id)
    if not deleted:
        raise NotFoundError(f"Store {store_id} not found", detail={"store_id": store_id})
    logger.info("[stores] deleted store_id=%s", store_id)


async def get_owner_dashboard(gateway: PersistenceGateway, owner_id: int) -> OwnerDashboard:
    """Get the owner's store and the ratings it received."""
    store = await gateway.find_store_by_owner(owner_id)
    if store is None:
        raise NotFoundError("Store not found for this owner", detail={"owner_id": owner_id})
    ratings = await gateway.list_ratings_for_store(store.id)
    return OwnerDashboard(store=store, ratings=ratings)


async def list_store_ratings(
    gateway: PersistenceGateway,
    store_id: int,
    acting_user: ActingUser,
) -> list[RatingRecord]:
    """List a store's ratings with rater details. Admins or the store's owner only."""
    store = await get_store(gateway, store_id)
    if acting_user.role is not Role.ADMIN and store.owner_id != acting_user.id:
        raise AuthorizationError(
            "Access denied. You can only access your own store",
            detail={"store_id": store_id},
        )
    return await gateway.list_ratings_for_store(store.id)
