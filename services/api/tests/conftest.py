"""Shared fixtures: an in-memory persistence gateway and an API client wired to it."""

from collections.abc import AsyncGenerator
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from store_ratings.main import app
from store_ratings.routes.deps import get_gateway
from store_ratings.services.aggregation import aggregate_ratings
from store_ratings.services.authorization import Role
from store_ratings.services.security import create_access_token, hash_password
from store_ratings.stores.gateway import (
    RatingRecord,
    StoreFilters,
    StoreRecord,
    UserFilters,
    UserRecord,
)

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class InMemoryGateway:
    """Dict-backed PersistenceGateway with the same read semantics as the SQL one."""

    def __init__(self) -> None:
        self.users: dict[int, UserRecord] = {}
        self.stores: dict[int, StoreRecord] = {}
        self.ratings: dict[int, RatingRecord] = {}
        self._ids = count(1)
        self._ticks = count(1)

    def _now(self) -> datetime:
        return _EPOCH + timedelta(seconds=next(self._ticks))

    # ------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------

    def add_user(
        self,
        name: str = "Default Test User Account",
        email: str | None = None,
        role: Role = Role.USER,
        password: str | None = None,
        address: str = "1 Test Street",
    ) -> UserRecord:
        user_id = next(self._ids)
        now = self._now()
        user = UserRecord(
            id=user_id,
            name=name,
            email=email or f"user{user_id}@example.com",
            address=address,
            role=role,
            password_hash=hash_password(password) if password else "",
            created_at=now,
            updated_at=now,
        )
        self.users[user_id] = user
        return user

    def add_store(
        self,
        name: str | None = None,
        email: str | None = None,
        owner_id: int | None = None,
        address: str = "10 Market Square",
    ) -> StoreRecord:
        store_id = next(self._ids)
        now = self._now()
        store = StoreRecord(
            id=store_id,
            name=name or f"Neighbourhood Store Number {store_id}",
            email=email or f"store{store_id}@example.com",
            address=address,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        self.stores[store_id] = store
        return store

    def ratings_for(self, user_id: int, store_id: int) -> list[RatingRecord]:
        return [r for r in self.ratings.values() if r.user_id == user_id and r.store_id == store_id]

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    async def find_user_by_id(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.email == email), None)

    async def insert_user(
        self, *, name: str, email: str, password_hash: str, address: str, role: Role
    ) -> int:
        user_id = next(self._ids)
        now = self._now()
        self.users[user_id] = UserRecord(
            id=user_id,
            name=name,
            email=email,
            address=address,
            role=role,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        return user_id

    async def update_user_password(self, user_id: int, password_hash: str) -> bool:
        user = self.users.get(user_id)
        if user is None:
            return False
        self.users[user_id] = replace(user, password_hash=password_hash, updated_at=self._now())
        return True

    async def list_users(self, filters: UserFilters) -> list[UserRecord]:
        users = [
            u
            for u in self.users.values()
            if _contains(u.name, filters.name)
            and _contains(u.email, filters.email)
            and _contains(u.address, filters.address)
            and (filters.role is None or u.role is filters.role)
        ]
        if filters.sort_by:
            key = (lambda u: u.role.value) if filters.sort_by == "role" else (lambda u: getattr(u, filters.sort_by))
            users.sort(key=key, reverse=filters.sort_order == "desc")
        else:
            users.sort(key=lambda u: (u.created_at, u.id), reverse=True)
        return _page(users, filters.offset, filters.limit)

    async def count_users(self, filters: UserFilters | None = None) -> int:
        if filters is None:
            return len(self.users)
        return len(await self.list_users(replace(filters, limit=None, offset=0)))

    # ------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------

    def _with_aggregate(self, store: StoreRecord) -> StoreRecord:
        aggregate = aggregate_ratings(r.rating for r in self.ratings.values() if r.store_id == store.id)
        owner = self.users.get(store.owner_id) if store.owner_id is not None else None
        return replace(
            store,
            owner_name=owner.name if owner else None,
            average_rating=aggregate.average_rating,
            total_ratings=aggregate.total_ratings,
        )

    async def find_store_by_id(self, store_id: int) -> StoreRecord | None:
        store = self.stores.get(store_id)
        return self._with_aggregate(store) if store else None

    async def find_store_by_owner(
        self, owner_id: int, exclude_store_id: int | None = None
    ) -> StoreRecord | None:
        for store in sorted(self.stores.values(), key=lambda s: s.id):
            if store.owner_id == owner_id and store.id != exclude_store_id:
                return self._with_aggregate(store)
        return None

    async def find_conflicting_store(
        self, *, name: str | None = None, email: str | None = None, exclude_store_id: int | None = None
    ) -> StoreRecord | None:
        if name is None and email is None:
            return None
        for store in sorted(self.stores.values(), key=lambda s: s.id):
            if store.id == exclude_store_id:
                continue
            if (name is not None and store.name == name) or (email is not None and store.email == email):
                return self._with_aggregate(store)
        return None

    async def insert_store(
        self, *, name: str, email: str, address: str, owner_id: int | None
    ) -> int:
        return self.add_store(name=name, email=email, owner_id=owner_id, address=address).id

    async def update_store_fields(self, store_id: int, fields: dict[str, Any]) -> bool:
        store = self.stores.get(store_id)
        if store is None:
            return False
        self.stores[store_id] = replace(store, **fields)
        return True

    async def delete_store(self, store_id: int) -> bool:
        if store_id not in self.stores:
            return False
        del self.stores[store_id]
        self.ratings = {rid: r for rid, r in self.ratings.items() if r.store_id != store_id}
        return True

    async def list_stores(self, filters: StoreFilters) -> list[StoreRecord]:
        stores = [
            self._with_aggregate(s)
            for s in self.stores.values()
            if _contains(s.name, filters.name) and _contains(s.address, filters.address)
        ]
        if filters.sort_by:
            stores.sort(key=lambda s: getattr(s, filters.sort_by), reverse=filters.sort_order == "desc")
        else:
            stores.sort(key=lambda s: (s.created_at, s.id), reverse=True)
        return _page(stores, filters.offset, filters.limit)

    async def count_stores(self, filters: StoreFilters | None = None) -> int:
        if filters is None:
            return len(self.stores)
        return len(await self.list_stores(replace(filters, limit=None, offset=0)))

    async def count_ratings_for_store(self, store_id: int) -> int:
        return sum(1 for r in self.ratings.values() if r.store_id == store_id)

    async def average_rating_for_store(self, store_id: int) -> float:
        values = [r.rating for r in self.ratings.values() if r.store_id == store_id]
        return sum(values) / len(values) if values else 0.0

    # ------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------

    async def find_rating_by_id(self, rating_id: int) -> RatingRecord | None:
        return self.ratings.get(rating_id)

    async def find_rating_by_user_and_store(self, user_id: int, store_id: int) -> RatingRecord | None:
        matches = self.ratings_for(user_id, store_id)
        return matches[0] if matches else None

    async def insert_rating(self, user_id: int, store_id: int, value: int) -> int:
        existing = self.ratings_for(user_id, store_id)
        if existing:
            await self.update_rating_value(existing[0].id, value)
            return existing[0].id
        rating_id = next(self._ids)
        now = self._now()
        self.ratings[rating_id] = RatingRecord(
            id=rating_id,
            user_id=user_id,
            store_id=store_id,
            rating=value,
            created_at=now,
            updated_at=now,
        )
        return rating_id

    async def update_rating_value(self, rating_id: int, value: int) -> None:
        rating = self.ratings.get(rating_id)
        if rating is not None:
            self.ratings[rating_id] = replace(rating, rating=value, updated_at=self._now())

    async def delete_rating(self, rating_id: int) -> bool:
        return self.ratings.pop(rating_id, None) is not None

    async def list_ratings_for_user(self, user_id: int) -> list[RatingRecord]:
        ratings = sorted(
            (r for r in self.ratings.values() if r.user_id == user_id and r.store_id in self.stores),
            key=lambda r: (r.created_at, r.id),
            reverse=True,
        )
        return [
            replace(r, store_name=self.stores[r.store_id].name, store_address=self.stores[r.store_id].address)
            for r in ratings
        ]

    async def list_ratings_for_store(self, store_id: int) -> list[RatingRecord]:
        ratings = sorted(
            (r for r in self.ratings.values() if r.store_id == store_id and r.user_id in self.users),
            key=lambda r: (r.created_at, r.id),
            reverse=True,
        )
        return [
            replace(r, user_name=self.users[r.user_id].name, user_email=self.users[r.user_id].email)
            for r in ratings
        ]

    async def count_ratings(self) -> int:
        return len(self.ratings)


def _contains(value: str, needle: str | None) -> bool:
    return not needle or needle.lower() in value.lower()


def _page(items: list, offset: int, limit: int | None) -> list:
    return items[offset:] if limit is None else items[offset : offset + limit]


@pytest.fixture
def gateway() -> InMemoryGateway:
    """Empty in-memory gateway."""
    return InMemoryGateway()


@pytest.fixture
async def client(gateway: InMemoryGateway) -> AsyncGenerator[AsyncClient, None]:
    """API client whose routes use the in-memory gateway."""

    async def override_gateway() -> AsyncGenerator[InMemoryGateway, None]:
        yield gateway

    app.dependency_overrides[get_gateway] = override_gateway
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_gateway, None)


def auth_headers(user: UserRecord) -> dict[str, str]:
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def headers_for():
    """Factory fixture building bearer headers for a user."""
    return auth_headers
