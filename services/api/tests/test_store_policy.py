"""Tests for role-gated store updates."""

import pytest

from store_ratings.errors import (
    AuthorizationError,
    ConflictError,
    ConstraintError,
    NoChangeError,
    NotFoundError,
)
from store_ratings.services.authorization import (
    STORE_FIELDS,
    ActingUser,
    FieldAccess,
    Role,
    can_edit_store,
    store_field_access,
)
from store_ratings.services.ratings import submit_or_update_rating
from store_ratings.services.store_policy import update_store


@pytest.fixture
def owned_store(gateway):
    """A store owned by a store owner, plus that owner."""
    owner = gateway.add_user(name="Olivia Ownerton Hughes", role=Role.STORE_OWNER)
    store = gateway.add_store(
        name="Hughes Family Hardware Store",
        email="hardware@example.com",
        owner_id=owner.id,
    )
    return store, owner


def acting(user) -> ActingUser:
    return ActingUser(id=user.id, role=user.role)


# ============================================================
# Decision table
# ============================================================


def test_every_role_has_an_entry_for_every_field():
    for role in Role:
        for field in STORE_FIELDS:
            assert isinstance(store_field_access(role, field), FieldAccess)


def test_unknown_field_is_not_in_table():
    with pytest.raises(KeyError):
        store_field_access(Role.ADMIN, "average_rating")


def test_can_edit_store_matrix():
    assert can_edit_store(Role.ADMIN, None, 1)
    assert can_edit_store(Role.ADMIN, 7, 1)
    assert can_edit_store(Role.STORE_OWNER, 1, 1)
    assert not can_edit_store(Role.STORE_OWNER, 7, 1)
    assert not can_edit_store(Role.STORE_OWNER, None, 1)
    assert not can_edit_store(Role.USER, 1, 1)


# ============================================================
# Store owner
# ============================================================


@pytest.mark.asyncio
async def test_owner_updates_email_and_address(gateway, owned_store):
    store, owner = owned_store

    updated = await update_store(
        gateway,
        store.id,
        {"email": "new-hardware@example.com", "address": "22 New Road"},
        acting(owner),
    )

    assert updated.email == "new-hardware@example.com"
    assert updated.address == "22 New Road"
    assert updated.name == store.name
    assert updated.updated_at != store.updated_at


@pytest.mark.asyncio
async def test_owner_cannot_rename(gateway, owned_store):
    store, owner = owned_store

    with pytest.raises(AuthorizationError):
        await update_store(gateway, store.id, {"name": "Completely Different Store Name"}, acting(owner))
    assert gateway.stores[store.id].name == store.name


@pytest.mark.asyncio
async def test_owner_cannot_reassign(gateway, owned_store):
    store, owner = owned_store
    other_owner = gateway.add_user(role=Role.STORE_OWNER)

    with pytest.raises(AuthorizationError):
        await update_store(gateway, store.id, {"owner_id": other_owner.id}, acting(owner))
    assert gateway.stores[store.id].owner_id == owner.id


@pytest.mark.asyncio
async def test_owner_may_resend_unchanged_forbidden_field(gateway, owned_store):
    store, owner = owned_store

    updated = await update_store(
        gateway,
        store.id,
        {"name": store.name, "address": "1 Resent Name Lane"},
        acting(owner),
    )

    assert updated.address == "1 Resent Name Lane"


@pytest.mark.asyncio
async def test_owner_cannot_edit_another_store(gateway, owned_store):
    store, _ = owned_store
    intruder = gateway.add_user(role=Role.STORE_OWNER)
    gateway.add_store(owner_id=intruder.id)

    with pytest.raises(AuthorizationError):
        await update_store(gateway, store.id, {"address": "Somewhere Else"}, acting(intruder))
    assert gateway.stores[store.id].address == store.address


# ============================================================
# Normal user
# ============================================================


@pytest.mark.asyncio
async def test_user_cannot_update_any_field(gateway, owned_store):
    store, _ = owned_store
    user = gateway.add_user()

    for field, value in [("name", "X"), ("email", "x@example.com"), ("address", "X Street")]:
        with pytest.raises(AuthorizationError):
            await update_store(gateway, store.id, {field: value}, acting(user))

    assert gateway.stores[store.id] == store


# ============================================================
# Admin
# ============================================================


@pytest.mark.asyncio
async def test_admin_updates_any_field(gateway, owned_store):
    store, _ = owned_store
    admin = gateway.add_user(role=Role.ADMIN)
    new_owner = gateway.add_user(name="Nathaniel Newowner Price", role=Role.STORE_OWNER)

    updated = await update_store(
        gateway,
        store.id,
        {"name": "Price Brothers Hardware Store", "owner_id": new_owner.id},
        acting(admin),
    )

    assert updated.name == "Price Brothers Hardware Store"
    assert updated.owner_id == new_owner.id
    assert updated.owner_name == "Nathaniel Newowner Price"


@pytest.mark.asyncio
async def test_admin_can_unassign_owner(gateway, owned_store):
    store, _ = owned_store
    admin = gateway.add_user(role=Role.ADMIN)

    updated = await update_store(gateway, store.id, {"owner_id": None}, acting(admin))

    assert updated.owner_id is None
    assert updated.owner_name is None


@pytest.mark.asyncio
async def test_admin_cannot_assign_owner_of_another_store(gateway, owned_store):
    store, _ = owned_store
    admin = gateway.add_user(role=Role.ADMIN)
    busy_owner = gateway.add_user(role=Role.STORE_OWNER)
    gateway.add_store(owner_id=busy_owner.id)

    with pytest.raises(ConstraintError) as exc_info:
        await update_store(gateway, store.id, {"owner_id": busy_owner.id}, acting(admin))
    assert exc_info.value.detail["owner_id"] == busy_owner.id


@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN])
@pytest.mark.asyncio
async def test_admin_cannot_assign_non_owner_role(gateway, owned_store, role):
    store, owner = owned_store
    admin = gateway.add_user(role=Role.ADMIN)
    candidate = gateway.add_user(role=role)

    with pytest.raises(ConstraintError):
        await update_store(gateway, store.id, {"owner_id": candidate.id}, acting(admin))
    assert gateway.stores[store.id].owner_id == owner.id


@pytest.mark.asyncio
async def test_admin_cannot_assign_missing_user(gateway, owned_store):
    store, _ = owned_store
    admin = gateway.add_user(role=Role.ADMIN)

    with pytest.raises(ConstraintError):
        await update_store(gateway, store.id, {"owner_id": 4040}, acting(admin))


@pytest.mark.asyncio
async def test_identical_values_raise_no_change(gateway, owned_store):
    store, owner = owned_store
    admin = gateway.add_user(role=Role.ADMIN)

    with pytest.raises(NoChangeError):
        await update_store(
            gateway,
            store.id,
            {"name": store.name, "email": store.email, "address": store.address, "owner_id": owner.id},
            acting(admin),
        )
    with pytest.raises(NoChangeError):
        await update_store(gateway, store.id, {"address": store.address}, acting(owner))
    with pytest.raises(NoChangeError):
        await update_store(gateway, store.id, {}, acting(admin))


@pytest.mark.asyncio
async def test_duplicate_name_or_email_conflicts(gateway, owned_store):
    store, _ = owned_store
    admin = gateway.add_user(role=Role.ADMIN)
    other = gateway.add_store(name="Other Neighbourhood Bakery", email="bakery@example.com")

    with pytest.raises(ConflictError) as exc_info:
        await update_store(gateway, store.id, {"name": other.name}, acting(admin))
    assert exc_info.value.detail["field"] == "name"

    with pytest.raises(ConflictError) as exc_info:
        await update_store(gateway, store.id, {"email": other.email}, acting(admin))
    assert exc_info.value.detail["field"] == "email"


@pytest.mark.asyncio
async def test_unknown_field_is_rejected(gateway, owned_store):
    store, owner = owned_store

    with pytest.raises(ConstraintError):
        await update_store(gateway, store.id, {"average_rating": 5}, acting(owner))


@pytest.mark.asyncio
async def test_missing_store_is_not_found(gateway):
    admin = gateway.add_user(role=Role.ADMIN)

    with pytest.raises(NotFoundError):
        await update_store(gateway, 321, {"address": "Nowhere"}, acting(admin))


@pytest.mark.asyncio
async def test_update_returns_fresh_aggregate(gateway, owned_store):
    store, owner = owned_store
    rater = gateway.add_user()
    await submit_or_update_rating(gateway, rater.id, store.id, 5)

    updated = await update_store(gateway, store.id, {"address": "5 Rated Road"}, acting(owner))

    assert updated.average_rating == 5.0
    assert updated.total_ratings == 1
