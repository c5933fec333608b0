"""JWT verification for tokens issued by the external identity provider.

The marketplace shares one HS256 secret with the identity provider. Tokens
carry ``sub`` (actor id), ``role`` (buyer / vendor / admin) and, for vendor
accounts, ``vendor_id``.

create_access_token exists for local tooling and tests; production tokens
are minted by the identity provider.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mp_common.enums import ActorRole
from src.mp_common.errors import InvalidCredentialsError
from src.mp_gateway.auth.actor import Actor

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def create_access_token(
    actor_id: str,
    role: ActorRole = ActorRole.BUYER,
    vendor_id: str | None = None,
    expires_in: timedelta = timedelta(minutes=30),
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": actor_id,
        "role": role.value,
        "type": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    if vendor_id is not None:
        payload["vendor_id"] = vendor_id
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_actor(token: str) -> Actor:
    """Decode and validate an access token into an Actor.

    Raises:
        InvalidCredentialsError: signature invalid, token expired, wrong token
            type, or missing/unknown claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()

    actor_id = payload.get("sub")
    if not actor_id:
        raise InvalidCredentialsError()

    try:
        role = ActorRole(payload.get("role", ActorRole.BUYER.value))
    except ValueError:
        raise InvalidCredentialsError() from None

    return Actor(id=str(actor_id), role=role, vendor_id=payload.get("vendor_id"))
