"""Schemas for users and authentication."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from store_ratings.schemas.common import check_password_strength, clean_text
from store_ratings.services.authorization import Role


class UserFields(BaseModel):
    """Fields shared by registration and admin user creation."""

    name: str = Field(min_length=20, max_length=60)
    email: EmailStr
    address: str = Field(max_length=400)
    password: str

    @field_validator("name", "address", mode="before")
    @classmethod
    def _clean(cls, v: object) -> object:
        return clean_text(v)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class RegisterRequest(UserFields):
    """Request body for self-registration."""


class CreateUserRequest(UserFields):
    """Request body for admin user creation."""

    role: Role = Role.USER


class LoginRequest(BaseModel):
    """Request body for login."""

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


class UpdatePasswordRequest(BaseModel):
    """Request body for changing the caller's password."""

    current_password: str = Field(alias="currentPassword", min_length=1)
    password: str

    model_config = {"populate_by_name": True}

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class UserOut(BaseModel):
    """Public user representation."""

    id: int
    name: str
    email: str
    address: str
    role: Role
    created_at: datetime | None = None
    store_rating: float | None = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Response from register/login."""

    access_token: str
    token_type: str = "bearer"
    user: UserOut


class UserListResponse(BaseModel):
    """One page of a user listing. ``total`` counts every match."""

    users: list[UserOut]
    total: int
    page: int
    limit: int


class DashboardStatsOut(BaseModel):
    """Admin dashboard totals."""

    total_users: int
    total_stores: int
    total_ratings: int

    model_config = {"from_attributes": True}
