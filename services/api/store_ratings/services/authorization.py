"""Roles and the store field authorization table.

Who may touch which store field:

| Role        | name      | email     | address   | owner_id  |
|-------------|-----------|-----------|-----------|-----------|
| admin       | any store | any store | any store | any store |
| store_owner | forbidden | own store | own store | forbidden |
| user        | forbidden | forbidden | forbidden | forbidden |

Every Role has a row; lookups never fall through to a default.
"""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    """Principal role."""

    ADMIN = "admin"
    USER = "user"
    STORE_OWNER = "store_owner"


class FieldAccess(Enum):
    """How a role may change a single store field."""

    ANY_STORE = "any_store"
    OWN_STORE = "own_store"
    FORBIDDEN = "forbidden"


STORE_FIELDS = ("name", "email", "address", "owner_id")


@dataclass(frozen=True)
class ActingUser:
    """Authenticated principal supplied by the route guard."""

    id: int
    role: Role


_STORE_FIELD_ACCESS: dict[Role, dict[str, FieldAccess]] = {
    Role.ADMIN: {
        "name": FieldAccess.ANY_STORE,
        "email": FieldAccess.ANY_STORE,
        "address": FieldAccess.ANY_STORE,
        "owner_id": FieldAccess.ANY_STORE,
    },
    Role.STORE_OWNER: {
        "name": FieldAccess.FORBIDDEN,
        "email": FieldAccess.OWN_STORE,
        "address": FieldAccess.OWN_STORE,
        "owner_id": FieldAccess.FORBIDDEN,
    },
    Role.USER: {
        "name": FieldAccess.FORBIDDEN,
        "email": FieldAccess.FORBIDDEN,
        "address": FieldAccess.FORBIDDEN,
        "owner_id": FieldAccess.FORBIDDEN,
    },
}


def store_field_access(role: Role, field: str) -> FieldAccess:
    """Get the access a role has to one store field.

    Raises:
        KeyError: If the field is not a store field.
    """
    return _STORE_FIELD_ACCESS[role][field]


def can_edit_store(role: Role, store_owner_id: int | None, user_id: int) -> bool:
    """Check whether a principal may edit the given store at all.

    A role with only forbidden fields may not edit. A role with any
    own-store field must own the store.
    """
    access = set(_STORE_FIELD_ACCESS[role].values())
    if access == {FieldAccess.FORBIDDEN}:
        return False
    if FieldAccess.OWN_STORE in access:
        return store_owner_id is not None and store_owner_id == user_id
    return True
