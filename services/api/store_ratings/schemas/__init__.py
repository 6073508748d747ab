"""Pydantic schemas for API request/response validation."""

from store_ratings.schemas.common import ErrorDetail, ErrorResponse, MessageResponse
from store_ratings.schemas.ratings import (
    OwnerDashboardResponse,
    RatingListResponse,
    RatingOut,
    StoreWithUserRating,
    StoreWithUserRatingResponse,
    SubmitRatingRequest,
    SubmitRatingResponse,
    UpdateRatingRequest,
)
from store_ratings.schemas.stores import (
    CreateStoreRequest,
    StoreListResponse,
    StoreOut,
    StoreResponse,
    StoreStatsOut,
    UpdateStoreRequest,
)
from store_ratings.schemas.users import (
    CreateUserRequest,
    DashboardStatsOut,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UpdatePasswordRequest,
    UserListResponse,
    UserOut,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "OwnerDashboardResponse",
    "RatingListResponse",
    "RatingOut",
    "StoreWithUserRating",
    "StoreWithUserRatingResponse",
    "SubmitRatingRequest",
    "SubmitRatingResponse",
    "UpdateRatingRequest",
    "CreateStoreRequest",
    "StoreListResponse",
    "StoreOut",
    "StoreResponse",
    "StoreStatsOut",
    "UpdateStoreRequest",
    "CreateUserRequest",
    "DashboardStatsOut",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UpdatePasswordRequest",
    "UserListResponse",
    "UserOut",
]
