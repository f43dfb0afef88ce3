"""
Capability checks.

The acting user is passed explicitly into every operation that
needs it. Nothing here reads global session state.
"""

import logging
from dataclasses import dataclass

from water_delivery.errors import AuthorizationError
from water_delivery.models.enums import UserRole

logger = logging.getLogger(__name__)

ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: UserRole
    driver_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER and self.driver_id is not None


def _deny(actor: Actor, message: str) -> AuthorizationError:
    logger.warning(
        "Authorization denied",
        extra={"user_id": actor.user_id, "role": actor.role.value, "reason": message},
    )
    return AuthorizationError(message)


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise _deny(actor, "Admin access required")


def require_driver(actor: Actor, driver_id: int) -> None:
    """The actor must be the driver identified by driver_id."""
    if not actor.is_driver:
        raise _deny(actor, "Only drivers can perform this action")
    if actor.driver_id != driver_id:
        raise _deny(actor, "Drivers can only act on their own records")


def require_admin_or_driver(actor: Actor, driver_id: int | None) -> None:
    """Admins pass; drivers pass only for their own driver_id."""
    if actor.is_admin:
        return
    if actor.is_driver and driver_id is not None and actor.driver_id == driver_id:
        return
    raise _deny(actor, "Not allowed to access this driver's records")
