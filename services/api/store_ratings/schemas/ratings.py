"""Schemas for ratings."""

from datetime import datetime

from pydantic import BaseModel, Field

from store_ratings.schemas.stores import StoreOut


class SubmitRatingRequest(BaseModel):
    """Request body for submitting (or re-submitting) a rating."""

    store_id: int = Field(ge=1)
    rating: int = Field(ge=1, le=5, strict=True)


class UpdateRatingRequest(BaseModel):
    """Request body for changing a rating by id."""

    rating: int = Field(ge=1, le=5, strict=True)


class RatingOut(BaseModel):
    """Rating, optionally joined with store or rater details."""

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

    model_config = {"from_attributes": True}


class SubmitRatingResponse(BaseModel):
    """Response from rating submission."""

    message: str
    created: bool
    rating: RatingOut


class RatingListResponse(BaseModel):
    """Response for rating listings."""

    ratings: list[RatingOut]


class StoreWithUserRating(StoreOut):
    """Store plus the caller's own rating, if any."""

    user_rating: int | None = None


class StoreWithUserRatingResponse(BaseModel):
    """Envelope for a store seen by a rating user."""

    store: StoreWithUserRating


class OwnerDashboardResponse(BaseModel):
    """A store owner's store and its ratings."""

    store: StoreOut
    ratings: list[RatingOut]
