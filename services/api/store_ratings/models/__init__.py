"""SQLAlchemy ORM models.

Models represent database tables:
- users: Accounts with a role (admin, user, store_owner)
- stores: Rated stores, optionally owned by a store_owner
- ratings: One 1-5 star rating per (user, store)
"""

from store_ratings.models.user import User
from store_ratings.models.store import Store
from store_ratings.models.rating import Rating

__all__ = ["User", "Store", "Rating"]
