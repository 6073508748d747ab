"""User accounts service.

Self-registration always yields role ``user``; admins create accounts of
any role. Store owners are reported with the average rating of their store.
"""

import logging
from dataclasses import dataclass

from store_ratings.errors import AuthenticationError, ConflictError, NotFoundError
from store_ratings.services.authorization import Role
from store_ratings.services.security import hash_password, verify_password
from store_ratings.stores.gateway import PersistenceGateway, UserFilters, UserRecord

logger = logging.getLogger("uvicorn.error")


@dataclass
class UserProfile:
    """User plus the rating of the store they own (store owners only)."""

    user: UserRecord
    store_rating: float | None = None


@dataclass
class DashboardStats:
    """Platform-wide totals for the admin dashboard."""

    total_users: int
    total_stores: int
    total_ratings: int


async def create_user(
    gateway: PersistenceGateway,
    *,
    name: str,
    email: str,
    password: str,
    address: str,
    role: Role = Role.USER,
) -> UserRecord:
    """Create an account.

    Raises:
        ConflictError: If the email is already registered.
    """
    if await gateway.find_user_by_email(email) is not None:
        raise ConflictError("User already exists with this email", detail={"field": "email"})

    user_id = await gateway.insert_user(
        name=name,
        email=email,
        password_hash=hash_password(password),
        address=address,
        role=role,
    )
    logger.info("[users] created user_id=%s role=%s", user_id, role.value)

    user = await gateway.find_user_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found", detail={"user_id": user_id})
    return user


async def register_user(
    gateway: PersistenceGateway,
    *,
    name: str,
    email: str,
    password: str,
    address: str,
) -> UserRecord:
    """Self-service registration of a normal user."""
    return await create_user(
        gateway,
        name=name,
        email=email,
        password=password,
        address=address,
        role=Role.USER,
    )


async def authenticate_user(gateway: PersistenceGateway, email: str, password: str) -> UserRecord:
    """Check credentials and return the matching user.

    Raises:
        AuthenticationError: On unknown email or wrong password.
    """
    user = await gateway.find_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user


async def update_password(
    gateway: PersistenceGateway,
    user_id: int,
    current_password: str,
    new_password: str,
) -> None:
    """Replace a user's password after checking the current one."""
    user = await gateway.find_user_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found", detail={"user_id": user_id})
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")

    await gateway.update_user_password(user.id, hash_password(new_password))
    logger.info("[users] password updated user_id=%s", user.id)


async def _with_store_rating(gateway: PersistenceGateway, user: UserRecord) -> UserProfile:
    if user.role is not Role.STORE_OWNER:
        return UserProfile(user=user)
    store = await gateway.find_store_by_owner(user.id)
    return UserProfile(user=user, store_rating=store.average_rating if store else None)


async def get_user(gateway: PersistenceGateway, user_id: int) -> UserProfile:
    """Get a user's profile.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = await gateway.find_user_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found", detail={"user_id": user_id})
    return await _with_store_rating(gateway, user)


async def list_users(gateway: PersistenceGateway, filters: UserFilters) -> list[UserProfile]:
    """List users, store owners annotated with their store's rating."""
    users = await gateway.list_users(filters)
    return [await _with_store_rating(gateway, user) for user in users]


async def count_users(gateway: PersistenceGateway, filters: UserFilters) -> int:
    """Count users matching the filters, ignoring paging."""
    return await gateway.count_users(filters)


async def get_dashboard_stats(gateway: PersistenceGateway) -> DashboardStats:
    """Count users, stores and ratings."""
    return DashboardStats(
        total_users=await gateway.count_users(),
        total_stores=await gateway.count_stores(),
        total_ratings=await gateway.count_ratings(),
    )


async def ensure_admin(
    gateway: PersistenceGateway,
    *,
    name: str,
    email: str,
    password: str,
    address: str,
) -> UserRecord:
    """Create the bootstrap admin unless an account with that email exists."""
    existing = await gateway.find_user_by_email(email)
    if existing is not None:
        return existing
    return await create_user(
        gateway,
        name=name,
        email=email,
        password=password,
        address=address,
        role=Role.ADMIN,
    )
