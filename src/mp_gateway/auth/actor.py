"""Request-scoped identity.

An Actor is built from the bearer token of the current request and passed
explicitly into every service call. There is no process-wide "current user".
"""
from dataclasses import dataclass

from src.mp_common.enums import ActorRole


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole
    vendor_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN
