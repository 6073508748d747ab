"""Tests for accounts: registration, login, passwords, profiles."""

import pytest

from store_ratings.errors import AuthenticationError, ConflictError, NotFoundError
from store_ratings.services.authorization import Role
from store_ratings.services.ratings import submit_or_update_rating
from store_ratings.services.security import verify_password
from store_ratings.services.users import (
    authenticate_user,
    create_user,
    ensure_admin,
    get_dashboard_stats,
    get_user,
    list_users,
    register_user,
    update_password,
)
from store_ratings.stores.gateway import UserFilters

ACCOUNT = {
    "name": "Jonathan Registered Person",
    "email": "jonathan@example.com",
    "password": "Secret12!",
    "address": "9 Signup Street",
}


@pytest.mark.asyncio
async def test_register_creates_normal_user_with_hashed_password(gateway):
    user = await register_user(gateway, **ACCOUNT)

    assert user.role is Role.USER
    assert user.password_hash != ACCOUNT["password"]
    assert verify_password(ACCOUNT["password"], user.password_hash)


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(gateway):
    await register_user(gateway, **ACCOUNT)

    with pytest.raises(ConflictError):
        await create_user(gateway, **ACCOUNT, role=Role.STORE_OWNER)


@pytest.mark.asyncio
async def test_authenticate_user(gateway):
    created = await register_user(gateway, **ACCOUNT)

    user = await authenticate_user(gateway, ACCOUNT["email"], ACCOUNT["password"])
    assert user.id == created.id

    with pytest.raises(AuthenticationError):
        await authenticate_user(gateway, ACCOUNT["email"], "Wrong123!")
    with pytest.raises(AuthenticationError):
        await authenticate_user(gateway, "nobody@example.com", ACCOUNT["password"])


@pytest.mark.asyncio
async def test_update_password(gateway):
    user = await register_user(gateway, **ACCOUNT)

    with pytest.raises(AuthenticationError):
        await update_password(gateway, user.id, "NotMine1!", "Changed12!")

    await update_password(gateway, user.id, ACCOUNT["password"], "Changed12!")
    assert await authenticate_user(gateway, ACCOUNT["email"], "Changed12!")
    with pytest.raises(AuthenticationError):
        await authenticate_user(gateway, ACCOUNT["email"], ACCOUNT["password"])


@pytest.mark.asyncio
async def test_get_user_reports_store_rating_for_owners(gateway):
    owner = gateway.add_user(role=Role.STORE_OWNER)
    store = gateway.add_store(owner_id=owner.id)
    plain = gateway.add_user()
    await submit_or_update_rating(gateway, plain.id, store.id, 4)

    owner_profile = await get_user(gateway, owner.id)
    plain_profile = await get_user(gateway, plain.id)

    assert owner_profile.store_rating == 4.0
    assert plain_profile.store_rating is None


@pytest.mark.asyncio
async def test_get_missing_user(gateway):
    with pytest.raises(NotFoundError):
        await get_user(gateway, 77)


@pytest.mark.asyncio
async def test_list_users_filters_by_role_and_name(gateway):
    gateway.add_user(name="Alpha Normal User Person", role=Role.USER)
    gateway.add_user(name="Beta Store Owner Person", role=Role.STORE_OWNER)
    gateway.add_user(name="Gamma Store Owner Person", role=Role.STORE_OWNER)

    owners = await list_users(gateway, UserFilters(role=Role.STORE_OWNER, sort_by="name"))
    assert [p.user.name for p in owners] == ["Beta Store Owner Person", "Gamma Store Owner Person"]

    matches = await list_users(gateway, UserFilters(name="alpha"))
    assert [p.user.name for p in matches] == ["Alpha Normal User Person"]


@pytest.mark.asyncio
async def test_dashboard_stats(gateway):
    user = gateway.add_user()
    store = gateway.add_store()
    gateway.add_store()
    await submit_or_update_rating(gateway, user.id, store.id, 3)

    stats = await get_dashboard_stats(gateway)

    assert (stats.total_users, stats.total_stores, stats.total_ratings) == (1, 2, 1)


@pytest.mark.asyncio
async def test_ensure_admin_is_idempotent(gateway):
    account = {**ACCOUNT, "email": "admin@store.com"}

    first = await ensure_admin(gateway, **account)
    second = await ensure_admin(gateway, **account)

    assert first.id == second.id
    assert first.role is Role.ADMIN
    assert len(gateway.users) == 1
