"""Store endpoints.

Public:      GET /v1/stores, GET /v1/stores/{id}, GET /v1/stores/{id}/stats
Admin:       POST /v1/stores, DELETE /v1/stores/{id}
Owner/admin: PUT /v1/stores/{id}, GET /v1/stores/{id}/ratings
Owner:       GET /v1/stores/owner/dashboard

Routers are thin: the store update policy decides who may change what.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, Response, status

from store_ratings.routes.deps import get_acting_user, get_gateway, require_role
from store_ratings.schemas import (
    CreateStoreRequest,
    OwnerDashboardResponse,
    RatingListResponse,
    RatingOut,
    StoreListResponse,
    StoreOut,
    StoreResponse,
    StoreStatsOut,
    UpdateStoreRequest,
)
from store_ratings.services.aggregation import get_store_aggregate
from store_ratings.services.authorization import ActingUser, Role
from store_ratings.services.store_policy import update_store
from store_ratings.services.stores import (
    count_stores,
    create_store,
    delete_store,
    get_owner_dashboard,
    get_store,
    list_store_ratings,
    list_stores,
)
from store_ratings.stores.gateway import PersistenceGateway, StoreFilters

router = APIRouter()


@router.get("", response_model=StoreListResponse)
async def list_stores_endpoint(
    name: str | None = Query(default=None, max_length=60),
    address: str | None = Query(default=None, max_length=400),
    sort_by: Literal["name", "email", "address", "average_rating", "total_ratings"] | None = Query(
        default=None, alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query(default="asc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> StoreListResponse:
    """List stores with their rating aggregates.

    Paged: 10 per page unless ``limit`` is given. ``total`` counts all matches.
    """
    filters = StoreFilters(
        name=name.strip() if name else None,
        address=address.strip() if address else None,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=(page - 1) * limit,
    )
    stores = await list_stores(gateway, filters)
    return StoreListResponse(
        stores=[StoreOut.model_validate(s) for s in stores],
        total=await count_stores(gateway, filters),
        page=page,
        limit=limit,
    )


@router.post("", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store_endpoint(
    request: CreateStoreRequest,
    _admin: ActingUser = Depends(require_role(Role.ADMIN)),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> StoreResponse:
    """Create a store (admin)."""
    store = await create_store(
        gateway,
        name=request.name,
        email=request.email,
        address=request.address,
        owner_id=request.owner_id,
    )
    return StoreResponse(store=StoreOut.model_validate(store))


# Declared before /{store_id} so "owner" is not parsed as an id
@router.get("/owner/dashboard", response_model=OwnerDashboardResponse)
async def owner_dashboard(
    owner: ActingUser = Depends(require_role(Role.STORE_OWNER)),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> OwnerDashboardResponse:
    """The caller's store and the ratings it received."""
    dashboard = await get_owner_dashboard(gateway, owner.id)
    return OwnerDashboardResponse(
        store=StoreOut.model_validate(dashboard.store),
        ratings=[RatingOut.model_validate(r) for r in dashboard.ratings],
    )


@router.get("/{store_id}", response_model=StoreResponse)
async def get_store_endpoint(
    store_id: int = Path(ge=1),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> StoreResponse:
    """Get one store with its rating aggregate."""
    store = await get_store(gateway, store_id)
    return StoreResponse(store=StoreOut.model_validate(store))


@router.get("/{store_id}/stats", response_model=StoreStatsOut)
async def store_stats(
    store_id: int = Path(ge=1),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> StoreStatsOut:
    """Average rating and rating count of one store."""
    store = await get_store(gateway, store_id)
    aggregate = await get_store_aggregate(gateway, store.id)
    return StoreStatsOut(
        store_id=store.id,
        average_rating=aggregate.average_rating,
        total_ratings=aggregate.total_ratings,
    )


@router.put("/{store_id}", response_model=StoreResponse)
async def update_store_endpoint(
    request: UpdateStoreRequest,
    store_id: int = Path(ge=1),
    acting_user: ActingUser = Depends(get_acting_user),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> StoreResponse:
    """Partially update a store; allowed fields depend on the caller's role."""
    store = await update_store(
        gateway,
        store_id,
        request.model_dump(exclude_unset=True),
        acting_user,
    )
    return StoreResponse(store=StoreOut.model_validate(store))


@router.delete("/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store_endpoint(
    store_id: int = Path(ge=1),
    _admin: ActingUser = Depends(require_role(Role.ADMIN)),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Response:
    """Delete a store and its ratings (admin)."""
    await delete_store(gateway, store_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{store_id}/ratings", response_model=RatingListResponse)
async def store_ratings(
    store_id: int = Path(ge=1),
    acting_user: ActingUser = Depends(get_acting_user),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> RatingListResponse:
    """Ratings of one store with rater details (admin or the store's owner)."""
    ratings = await list_store_ratings(gateway, store_id, acting_user)
    return RatingListResponse(ratings=[RatingOut.model_validate(r) for r in ratings])
