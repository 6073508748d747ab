"""API routes."""

from fastapi import APIRouter

from store_ratings.routes import auth, ratings, stores, users

api_router = APIRouter()

# Registration, login, own profile
api_router.include_router(auth.router, prefix="/v1/auth", tags=["auth"])

# Admin user management
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])

# Store catalogue, updates, owner dashboard
api_router.include_router(stores.router, prefix="/v1/stores", tags=["stores"])

# Rating submission and history
api_router.include_router(ratings.router, prefix="/v1/ratings", tags=["ratings"])
