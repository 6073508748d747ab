"""Request-scoped dependencies: persistence gateway and the auth guard.

The guard verifies the bearer token, re-loads the user through the
gateway and hands services an ActingUser. Role checks here are coarse
route gates; fine-grained store rules live in services.
"""

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from store_ratings.errors import AuthenticationError, AuthorizationError
from store_ratings.services.authorization import ActingUser, Role
from store_ratings.services.security import decode_access_token
from store_ratings.stores.gateway import PersistenceGateway, SqlAlchemyGateway, UserRecord
from store_ratings.stores.postgres import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/login", auto_error=False)


async def get_gateway() -> AsyncGenerator[PersistenceGateway, None]:
    """Yield a gateway bound to a session that commits when the request succeeds."""
    async with get_session() as session:
        yield SqlAlchemyGateway(session)


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> UserRecord:
    """Resolve the authenticated user from the bearer token."""
    if not token:
        raise AuthenticationError("Access denied. No token provided")
    claims = decode_access_token(token)
    user = await gateway.find_user_by_id(claims.user_id)
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    return user


async def get_acting_user(user: UserRecord = Depends(get_current_user)) -> ActingUser:
    """Reduce the current user to the principal services work with."""
    return ActingUser(id=user.id, role=user.role)


def require_role(*roles: Role) -> Callable[..., Coroutine[Any, Any, ActingUser]]:
    """Build a dependency admitting only the given roles."""

    async def role_dep(acting_user: ActingUser = Depends(get_acting_user)) -> ActingUser:
        if acting_user.role not in roles:
            raise AuthorizationError(
                "Access denied. Insufficient permissions",
                detail={"required": [r.value for r in roles]},
            )
        return acting_user

    return role_dep
