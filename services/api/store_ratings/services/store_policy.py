"""Role-gated partial updates of store records.

Update flow:
1. Store must exist
2. Principal must be allowed to edit this store (role + ownership)
3. Forbidden fields may only be "requested" with their current value
4. Owner reassignment (admin) must target a store_owner without another store
5. Fields equal to the current value are dropped; nothing left -> NoChangeError
6. A changed name/email must not collide with another store
7. Apply the diff with a fresh updated_at and re-read the store

Store owners can never rename a store or hand it to someone else, so an
owner cannot take over another store's identity. Admins skip ownership
checks but not owner uniqueness.

Uniqueness checks are check-then-act; concurrent admin edits can race.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

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
from store_ratings.stores.gateway import PersistenceGateway, StoreRecord

logger = logging.getLogger("uvicorn.error")


async def ensure_assignable_owner(
    gateway: PersistenceGateway,
    owner_id: int,
    exclude_store_id: int | None = None,
) -> None:
    """Check a user can be made the owner of a store.

    Args:
        gateway: Persistence gateway.
        owner_id: Candidate owner.
        exclude_store_id: Store being updated (its current ownership is ignored).

    Raises:
        ConstraintError: If the user is missing, is not a store_owner,
            or already owns a different store.
    """
    owner = await gateway.find_user_by_id(owner_id)
    if owner is None or owner.role is not Role.STORE_OWNER:
        raise ConstraintError(
            "Invalid owner. User must have store_owner role",
            detail={"owner_id": owner_id},
        )

    owned = await gateway.find_store_by_owner(owner_id, exclude_store_id=exclude_store_id)
    if owned is not None:
        raise ConstraintError(
            "This user already owns another store",
            detail={"owner_id": owner_id, "store_id": owned.id},
        )


async def ensure_unique_store_identity(
    gateway: PersistenceGateway,
    *,
    name: str | None = None,
    email: str | None = None,
    exclude_store_id: int | None = None,
) -> None:
    """Raise ConflictError if another store already uses this name or email."""
    duplicate = await gateway.find_conflicting_store(
        name=name,
        email=email,
        exclude_store_id=exclude_store_id,
    )
    if duplicate is None:
        return
    field = "name" if name is not None and duplicate.name == name else "email"
    raise ConflictError(
        f"Store with this {field} already exists",
        detail={"field": field, "store_id": duplicate.id},
    )


def _current_value(store: StoreRecord, field: str) -> Any:
    return getattr(store, field)


async def update_store(
    gateway: PersistenceGateway,
    store_id: int,
    requested: Mapping[str, Any],
    acting_user: ActingUser,
) -> StoreRecord:
    """Apply a partial update to a store on behalf of a principal.

    Args:
        gateway: Persistence gateway.
        store_id: Store to update.
        requested: Subset of name/email/address/owner_id. An explicit
            owner_id of None unassigns the owner.
        acting_user: Authenticated principal.

    Returns:
        The refreshed store, including its recomputed rating aggregate.
    """
    unknown = sorted(set(requested) - set(STORE_FIELDS))
    if unknown:
        raise ConstraintError("Unknown store fields", detail={"fields": unknown})

    store = await gateway.find_store_by_id(store_id)
    if store is None:
        raise NotFoundError(f"Store {store_id} not found", detail={"store_id": store_id})

    if not can_edit_store(acting_user.role, store.owner_id, acting_user.id):
        raise AuthorizationError(
            "Access denied. You cannot update this store",
            detail={"store_id": store_id},
        )

    for field, value in requested.items():
        if store_field_access(acting_user.role, field) is FieldAccess.FORBIDDEN and value != _current_value(store, field):
            raise AuthorizationError(
                f"Your role may not change the store {field}",
                detail={"field": field},
            )

    new_owner_id = requested.get("owner_id", store.owner_id)
    if "owner_id" in requested and new_owner_id is not None and new_owner_id != store.owner_id:
        await ensure_assignable_owner(gateway, new_owner_id, exclude_store_id=store.id)

    diff = {
        field: value
        for field, value in requested.items()
        if value != _current_value(store, field)
    }
    if not diff:
        raise NoChangeError("No changes to update", detail={"store_id": store_id})

    if "name" in diff or "email" in diff:
        await ensure_unique_store_identity(
            gateway,
            name=diff.get("name"),
            email=diff.get("email"),
            exclude_store_id=store.id,
        )

    await gateway.update_store_fields(store.id, {**diff, "updated_at": datetime.now(timezone.utc)})
    logger.info(
        "[stores] updated store_id=%s by user_id=%s role=%s fields=%s",
        store.id,
        acting_user.id,
        acting_user.role.value,
        sorted(diff),
    )

    refreshed = await gateway.find_store_by_id(store.id)
    if refreshed is None:
        raise NotFoundError(f"Store {store_id} not found", detail={"store_id": store_id})
    return refreshed
