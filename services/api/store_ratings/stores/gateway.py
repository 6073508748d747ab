"""Persistence gateway.

Services never touch sessions or ORM objects directly. They receive a
``PersistenceGateway`` and work with the plain records defined here, so the
SQLAlchemy implementation can be swapped for an in-memory one in tests.

Store reads always carry the derived ``average_rating``/``total_ratings``
computed from the ratings table at read time.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Protocol

from sqlalchemy import Select, String, cast, delete, func, literal_column, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from store_ratings.models import Rating, Store, User
from store_ratings.services.authorization import Role


SortOrder = Literal["asc", "desc"]
StoreSortField = Literal["name", "email", "address", "average_rating", "total_ratings"]
UserSortField = Literal["name", "email", "address", "role", "created_at"]


@dataclass
class UserRecord:
    """User row without ORM state."""

    id: int
    name: str
    email: str
    address: str
    role: Role
    password_hash: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class StoreRecord:
    """Store row plus derived rating aggregate."""

    id: int
    name: str
    email: str
    address: str
    owner_id: int | None
    owner_name: str | None = None
    average_rating: float = 0.0
    total_ratings: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RatingRecord:
    """Rating row, optionally joined with store or rater details."""

    id: int
    user_id: int
    store_id: int
    rating: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    store_name: str | None = None
    store_address: str | None = None
    user_name: str | None = None
    user_email: str | None = None


@dataclass
class StoreFilters:
    """Filters for store listings. Text filters match substrings."""

    name: str | None = None
    address: str | None = None
    sort_by: StoreSortField | None = None
    sort_order: SortOrder = "asc"
    limit: int | None = None
    offset: int = 0


@dataclass
class UserFilters:
    """Filters for user listings. Text filters match substrings, role matches exactly."""

    name: str | None = None
    email: str | None = None
    address: str | None = None
    role: Role | None = None
    sort_by: UserSortField | None = None
    sort_order: SortOrder = "asc"
    limit: int | None = None
    offset: int = 0


class PersistenceGateway(Protocol):
    """Record-level access to users, stores and ratings."""

    # Users
    async def find_user_by_id(self, user_id: int) -> UserRecord | None: ...

    async def find_user_by_email(self, email: str) -> UserRecord | None: ...

    async def insert_user(
        self, *, name: str, email: str, password_hash: str, address: str, role: Role
    ) -> int: ...

    async def update_user_password(self, user_id: int, password_hash: str) -> bool: ...

    async def list_users(self, filters: UserFilters) -> list[UserRecord]: ...

    async def count_users(self, filters: UserFilters | None = None) -> int: ...

    # Stores
    async def find_store_by_id(self, store_id: int) -> StoreRecord | None: ...

    async def find_store_by_owner(
        self, owner_id: int, exclude_store_id: int | None = None
    ) -> StoreRecord | None: ...

    async def find_conflicting_store(
        self, *, name: str | None = None, email: str | None = None, exclude_store_id: int | None = None
    ) -> StoreRecord | None: ...

    async def insert_store(
        self, *, name: str, email: str, address: str, owner_id: int | None
    ) -> int: ...

    async def update_store_fields(self, store_id: int, fields: dict[str, Any]) -> bool: ...

    async def delete_store(self, store_id: int) -> bool: ...

    async def list_stores(self, filters: StoreFilters) -> list[StoreRecord]: ...

    async def count_stores(self, filters: StoreFilters | None = None) -> int: ...

    async def count_ratings_for_store(self, store_id: int) -> int: ...

    async def average_rating_for_store(self, store_id: int) -> float: ...

    # Ratings
    async def find_rating_by_id(self, rating_id: int) -> RatingRecord | None: ...

    async def find_rating_by_user_and_store(self, user_id: int, store_id: int) -> RatingRecord | None: ...

    async def insert_rating(self, user_id: int, store_id: int, value: int) -> int:
        """Insert a rating; if the pair already has one, overwrite it and return its id."""
        ...

    async def update_rating_value(self, rating_id: int, value: int) -> None: ...

    async def delete_rating(self, rating_id: int) -> bool: ...

    async def list_ratings_for_user(self, user_id: int) -> list[RatingRecord]: ...

    async def list_ratings_for_store(self, store_id: int) -> list[RatingRecord]: ...

    async def count_ratings(self) -> int: ...


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        email=user.email,
        address=user.address,
        role=user.role,
        password_hash=user.password_hash,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _rating_record(rating: Rating, **joined: Any) -> RatingRecord:
    return RatingRecord(
        id=rating.id,
        user_id=rating.user_id,
        store_id=rating.store_id,
        rating=rating.rating,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
        **joined,
    )


class SqlAlchemyGateway:
    """Gateway over an AsyncSession.

    Writes are flushed, not committed; the session owner commits
    (see ``get_session``). Written rows are refreshed so server-side
    timestamps are loaded before a record is built from them.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ============================================================
    # Users
    # ============================================================

    async def find_user_by_id(self, user_id: int) -> UserRecord | None:
        user = await self._session.get(User, user_id)
        return _user_record(user) if user else None

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        result = await self._session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        return _user_record(user) if user else None

    async def insert_user(
        self, *, name: str, email: str, password_hash: str, address: str, role: Role
    ) -> int:
        user = User(name=name, email=email, password_hash=password_hash, address=address, role=role)
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user.id

    async def update_user_password(self, user_id: int, password_hash: str) -> bool:
        user = await self._session.get(User, user_id)
        if user is None:
            return False
        user.password_hash = password_hash
        await self._session.flush()
        await self._session.refresh(user)
        return True

    @staticmethod
    def _filter_users(query: Select, filters: UserFilters) -> Select:
        if filters.name:
            query = query.where(User.name.ilike(f"%{filters.name}%"))
        if filters.email:
            query = query.where(User.email.ilike(f"%{filters.email}%"))
        if filters.address:
            query = query.where(User.address.ilike(f"%{filters.address}%"))
        if filters.role is not None:
            query = query.where(User.role == filters.role)
        return query

    async def list_users(self, filters: UserFilters) -> list[UserRecord]:
        query = self._filter_users(select(User), filters)

        if filters.sort_by:
            if filters.sort_by == "role":
                # Alphabetical by role value, not the enum's declaration order
                column = cast(User.role, String)
            else:
                column = getattr(User, filters.sort_by)
            query = query.order_by(column.desc() if filters.sort_order == "desc" else column.asc())
        else:
            query = query.order_by(User.created_at.desc(), User.id.desc())

        query = query.offset(filters.offset)
        if filters.limit is not None:
            query = query.limit(filters.limit)

        result = await self._session.execute(query)
        return [_user_record(user) for user in result.scalars().all()]

    async def count_users(self, filters: UserFilters | None = None) -> int:
        query = select(func.count(User.id))
        if filters is not None:
            query = self._filter_users(query, filters)
        result = await self._session.execute(query)
        return result.scalar() or 0

    # ============================================================
    # Stores
    # ============================================================

    def _store_query(self) -> Select:
        """Select stores with owner name and the rating aggregate."""
        aggregates = (
            select(
                Rating.store_id.label("store_id"),
                func.count(Rating.id).label("total_ratings"),
                func.avg(Rating.rating).label("average_rating"),
            )
            .group_by(Rating.store_id)
            .subquery()
        )
        owner = aliased(User)
        return (
            select(
                Store,
                owner.name.label("owner_name"),
                func.coalesce(aggregates.c.average_rating, 0).label("average_rating"),
                func.coalesce(aggregates.c.total_ratings, 0).label("total_ratings"),
            )
            .outerjoin(owner, Store.owner_id == owner.id)
            .outerjoin(aggregates, aggregates.c.store_id == Store.id)
        )

    @staticmethod
    def _store_record(row: Any) -> StoreRecord:
        store, owner_name, average_rating, total_ratings = row
        return StoreRecord(
            id=store.id,
            name=store.name,
            email=store.email,
            address=store.address,
            owner_id=store.owner_id,
            owner_name=owner_name,
            average_rating=float(average_rating or 0),
            total_ratings=int(total_ratings or 0),
            created_at=store.created_at,
            updated_at=store.updated_at,
        )

    async def _first_store(self, query: Select) -> StoreRecord | None:
        result = await self._session.execute(query.limit(1))
        row = result.first()
        return self._store_record(row) if row else None

    async def find_store_by_id(self, store_id: int) -> StoreRecord | None:
        return await self._first_store(self._store_query().where(Store.id == store_id))

    async def find_store_by_owner(
        self, owner_id: int, exclude_store_id: int | None = None
    ) -> StoreRecord | None:
        query = self._store_query().where(Store.owner_id == owner_id)
        if exclude_store_id is not None:
            query = query.where(Store.id != exclude_store_id)
        return await self._first_store(query.order_by(Store.id))

    async def find_conflicting_store(
        self, *, name: str | None = None, email: str | None = None, exclude_store_id: int | None = None
    ) -> StoreRecord | None:
        conditions = []
        if name is not None:
            conditions.append(Store.name == name)
        if email is not None:
            conditions.append(Store.email == email)
        if not conditions:
            return None

        query = self._store_query().where(or_(*conditions))
        if exclude_store_id is not None:
            query = query.where(Store.id != exclude_store_id)
        return await self._first_store(query.order_by(Store.id))

    async def insert_store(
        self, *, name: str, email: str, address: str, owner_id: int | None
    ) -> int:
        store = Store(name=name, email=email, address=address, owner_id=owner_id)
        self._session.add(store)
        await self._session.flush()
        await self._session.refresh(store)
        return store.id

    async def update_store_fields(self, store_id: int, fields: dict[str, Any]) -> bool:
        store = await self._session.get(Store, store_id)
        if store is None:
            return False
        for key, value in fields.items():
            setattr(store, key, value)
        await self._session.flush()
        await self._session.refresh(store)
        return True

    async def delete_store(self, store_id: int) -> bool:
        store = await self._session.get(Store, store_id)
        if store is None:
            return False
        # Explicit cascade: SQLite test databases do not enforce FK actions
        await self._session.execute(delete(Rating).where(Rating.store_id == store_id))
        await self._session.delete(store)
        await self._session.flush()
        return True

    @staticmethod
    def _filter_stores(query: Select, filters: StoreFilters) -> Select:
        if filters.name:
            query = query.where(Store.name.ilike(f"%{filters.name}%"))
        if filters.address:
            query = query.where(Store.address.ilike(f"%{filters.address}%"))
        return query

    async def list_stores(self, filters: StoreFilters) -> list[StoreRecord]:
        query = self._filter_stores(self._store_query(), filters)

        if filters.sort_by:
            if filters.sort_by in ("average_rating", "total_ratings"):
                # ORDER BY the aggregate's label in the select list
                column = literal_column(filters.sort_by)
            else:
                column = getattr(Store, filters.sort_by)
            query = query.order_by(column.desc() if filters.sort_order == "desc" else column.asc())
        else:
            query = query.order_by(Store.created_at.desc(), Store.id.desc())

        query = query.offset(filters.offset)
        if filters.limit is not None:
            query = query.limit(filters.limit)

        result = await self._session.execute(query)
        return [self._store_record(row) for row in result.all()]

    async def count_stores(self, filters: StoreFilters | None = None) -> int:
        query = select(func.count(Store.id))
        if filters is not None:
            query = self._filter_stores(query, filters)
        result = await self._session.execute(query)
        return result.scalar() or 0

    async def count_ratings_for_store(self, store_id: int) -> int:
        result = await self._session.execute(
            select(func.count(Rating.id)).where(Rating.store_id == store_id)
        )
        return result.scalar() or 0

    async def average_rating_for_store(self, store_id: int) -> float:
        result = await self._session.execute(
            select(func.avg(Rating.rating)).where(Rating.store_id == store_id)
        )
        average = result.scalar()
        return float(average) if average is not None else 0.0

    # ============================================================
    # Ratings
    # ============================================================

    async def find_rating_by_id(self, rating_id: int) -> RatingRecord | None:
        rating = await self._session.get(Rating, rating_id)
        return _rating_record(rating) if rating else None

    async def find_rating_by_user_and_store(self, user_id: int, store_id: int) -> RatingRecord | None:
        result = await self._session.execute(
            select(Rating).where(Rating.user_id == user_id, Rating.store_id == store_id)
        )
        rating = result.scalar_one_or_none()
        return _rating_record(rating) if rating else None

    async def insert_rating(self, user_id: int, store_id: int, value: int) -> int:
        rating = Rating(user_id=user_id, store_id=store_id, rating=value)
        try:
            async with self._session.begin_nested():
                self._session.add(rating)
        except IntegrityError:
            # A concurrent first submission for the pair committed first: overwrite it
            result = await self._session.execute(
                select(Rating).where(Rating.user_id == user_id, Rating.store_id == store_id)
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                raise
            existing.rating = value
            await self._session.flush()
            await self._session.refresh(existing)
            return existing.id
        await self._session.refresh(rating)
        return rating.id

    async def update_rating_value(self, rating_id: int, value: int) -> None:
        rating = await self._session.get(Rating, rating_id)
        if rating is None:
            return
        rating.rating = value
        await self._session.flush()
        await self._session.refresh(rating)

    async def delete_rating(self, rating_id: int) -> bool:
        rating = await self._session.get(Rating, rating_id)
        if rating is None:
            return False
        await self._session.delete(rating)
        await self._session.flush()
        return True

    async def list_ratings_for_user(self, user_id: int) -> list[RatingRecord]:
        result = await self._session.execute(
            select(Rating, Store.name, Store.address)
            .join(Store, Rating.store_id == Store.id)
            .where(Rating.user_id == user_id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
        )
        return [
            _rating_record(rating, store_name=store_name, store_address=store_address)
            for rating, store_name, store_address in result.all()
        ]

    async def list_ratings_for_store(self, store_id: int) -> list[RatingRecord]:
        result = await self._session.execute(
            select(Rating, User.name, User.email)
            .join(User, Rating.user_id == User.id)
            .where(Rating.store_id == store_id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
        )
        return [
            _rating_record(rating, user_name=user_name, user_email=user_email)
            for rating, user_name, user_email in result.all()
        ]

    async def count_ratings(self) -> int:
        result = await self._session.execute(select(func.count(Rating.id)))
        return result.scalar() or 0
