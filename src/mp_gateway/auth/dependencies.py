"""FastAPI identity dependencies.

Usage in any router:
    from src.mp_gateway.auth.dependencies import get_current_actor

    @router.get("/protected")
    async def protected(actor: Actor = Depends(get_current_actor)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.mp_common.enums import ActorRole
from src.mp_common.errors import ForbiddenError, InvalidCredentialsError
from src.mp_gateway.auth.actor import Actor
from src.mp_gateway.auth.jwt_handler import decode_actor

# auto_error=False so guest checkout can proceed without a token
_bearer = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_optional_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Actor | None:
    """Return the Actor for a bearer token, or None for an anonymous (guest) caller.

    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    try:
        return decode_actor(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


async def get_current_actor(
    actor: Actor | None = Depends(get_optional_actor),
) -> Actor:
    if actor is None:
        raise _CREDENTIALS_EXCEPTION
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Privileged endpoints: admin override surface and finance reporting."""
    if actor.role != ActorRole.ADMIN:
        raise ForbiddenError("Admin role required")
    return actor


async def require_vendor(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != ActorRole.VENDOR or not actor.vendor_id:
        raise ForbiddenError("Vendor account required")
    return actor
