"""Password hashing and access tokens.

Tokens are HS256 JWTs carrying the user id (``sub``), role and expiry.
The role claim is informational: the guard re-loads the user on every
request and trusts the stored role.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from store_ratings.errors import AuthenticationError
from store_ratings.services.authorization import Role
from store_ratings.settings import get_settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class TokenClaims:
    """Decoded access token."""

    user_id: int
    role: Role
    expires_at: datetime


def hash_password(password: str) -> str:
    """Hash a plaintext password."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a stored hash."""
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(user_id: int, role: Role, expires_delta: timedelta | None = None) -> str:
    """Issue a signed access token for a user."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": str(user_id), "role": role.value, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Verify and decode an access token.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return TokenClaims(
            user_id=int(payload["sub"]),
            role=Role(payload["role"]),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        raise AuthenticationError("Could not validate credentials") from e
