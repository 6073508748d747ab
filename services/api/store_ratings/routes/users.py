"""Admin user management endpoints.

All routes require the admin role.
"""

from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, status

from store_ratings.routes.deps import get_gateway, require_role
from store_ratings.schemas import CreateUserRequest, DashboardStatsOut, UserListResponse, UserOut
from store_ratings.services.authorization import Role
from store_ratings.services.users import (
    UserProfile,
    count_users,
    create_user,
    get_dashboard_stats,
    get_user,
    list_users,
)
from store_ratings.stores.gateway import PersistenceGateway, UserFilters

router = APIRouter(dependencies=[Depends(require_role(Role.ADMIN))])


def _user_out(profile: UserProfile) -> UserOut:
    return UserOut.model_validate({**asdict(profile.user), "store_rating": profile.store_rating})


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user_endpoint(
    request: CreateUserRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
) -> UserOut:
    """Create a user with any role."""
    user = await create_user(
        gateway,
        name=request.name,
        email=request.email,
        password=request.password,
        address=request.address,
        role=request.role,
    )
    return _user_out(UserProfile(user=user))


@router.get("", response_model=UserListResponse)
async def list_users_endpoint(
    name: str | None = Query(default=None, max_length=60),
    email: str | None = Query(default=None, max_length=255),
    address: str | None = Query(default=None, max_length=400),
    role: Role | None = Query(default=None),
    sort_by: Literal["name", "email", "address", "role", "created_at"] | None = Query(
        default=None, alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query(default="asc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> UserListResponse:
    """List users with filters, sorting and pagination.

    Paged: 10 per page unless ``limit`` is given. ``total`` counts all matches.
    """
    filters = UserFilters(
        name=name.strip() if name else None,
        email=email.strip() if email else None,
        address=address.strip() if address else None,
        role=role,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=(page - 1) * limit,
    )
    profiles = await list_users(gateway, filters)
    return UserListResponse(
        users=[_user_out(p) for p in profiles],
        total=await count_users(gateway, filters),
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=DashboardStatsOut)
async def dashboard_stats(gateway: PersistenceGateway = Depends(get_gateway)) -> DashboardStatsOut:
    """Totals for the admin dashboard."""
    stats = await get_dashboard_stats(gateway)
    return DashboardStatsOut.model_validate(stats)


@router.get("/{user_id}", response_model=UserOut)
async def get_user_endpoint(
    user_id: int = Path(ge=1),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> UserOut:
    """Get one user; store owners include their store rating."""
    return _user_out(await get_user(gateway, user_id))
