"""Schemas for stores."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from store_ratings.schemas.common import clean_text


class CreateStoreRequest(BaseModel):
    """Request body for store creation (admin)."""

    name: str = Field(min_length=20, max_length=60)
    email: EmailStr
    address: str = Field(max_length=400)
    owner_id: int | None = None

    @field_validator("name", "address", mode="before")
    @classmethod
    def _clean(cls, v: object) -> object:
        return clean_text(v)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


class UpdateStoreRequest(BaseModel):
    """Partial update. Only fields present in the body are considered.

    An explicit ``"owner_id": null`` unassigns the owner.
    """

    name: str | None = Field(default=None, min_length=20, max_length=60)
    email: EmailStr | None = None
    address: str | None = Field(default=None, max_length=400)
    owner_id: int | None = None

    model_config = {"extra": "forbid"}

    @field_validator("name", "address", mode="before")
    @classmethod
    def _clean(cls, v: object) -> object:
        return clean_text(v)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("name", "email", "address")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v


class StoreOut(BaseModel):
    """Store with derived rating aggregate."""

    id: int
    name: str
    email: str
    address: str
    owner_id: int | None = None
    owner_name: str | None = None
    average_rating: float = 0.0
    total_ratings: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class StoreResponse(BaseModel):
    """Single store envelope."""

    store: StoreOut


class StoreListResponse(BaseModel):
    """One page of a store listing. ``total`` counts every match."""

    stores: list[StoreOut]
    total: int
    page: int
    limit: int


class StoreStatsOut(BaseModel):
    """Rating aggregate of one store."""

    store_id: int
    average_rating: float
    total_ratings: int
