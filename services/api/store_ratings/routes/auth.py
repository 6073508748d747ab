"""Authentication endpoints.

POST /v1/auth/register - Self-registration (role "user"), returns a token
POST /v1/auth/login    - Exchange credentials for a token
GET  /v1/auth/me       - Current user profile
PUT  /v1/auth/password - Change own password
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, status

from store_ratings.routes.deps import get_current_user, get_gateway
from store_ratings.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UpdatePasswordRequest,
    UserOut,
)
from store_ratings.services.security import create_access_token
from store_ratings.services.users import authenticate_user, get_user, register_user, update_password
from store_ratings.stores.gateway import PersistenceGateway, UserRecord

router = APIRouter()


def _token_response(user: UserRecord) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        user=UserOut.model_validate(asdict(user)),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
) -> TokenResponse:
    """Register a new user account and log it in."""
    user = await register_user(
        gateway,
        name=request.name,
        email=request.email,
        password=request.password,
        address=request.address,
    )
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
) -> TokenResponse:
    """Log in with email and password."""
    user = await authenticate_user(gateway, request.email, request.password)
    return _token_response(user)


@router.get("/me", response_model=UserOut)
async def me(
    user: UserRecord = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> UserOut:
    """Get the caller's profile."""
    profile = await get_user(gateway, user.id)
    return UserOut.model_validate({**asdict(profile.user), "store_rating": profile.store_rating})


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: UpdatePasswordRequest,
    user: UserRecord = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> MessageResponse:
    """Change the caller's password."""
    await update_password(gateway, user.id, request.current_password, request.password)
    return MessageResponse(message="Password updated successfully")
