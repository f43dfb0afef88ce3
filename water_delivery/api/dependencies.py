"""
Request-scoped dependencies.

Identity is issued upstream; this layer only turns the trusted
identity headers into an Actor that is passed to the services.
"""

from fastapi import Header, HTTPException

from water_delivery.authorization import Actor
from water_delivery.models.enums import UserRole


def get_actor(
    x_user_id: int | None = Header(default=None),
    x_user_role: UserRole | None = Header(default=None),
    x_driver_id: int | None = Header(default=None),
) -> Actor:
    if x_user_id is None or x_user_role is None:
        raise HTTPException(status_code=401, detail="Missing identity headers")
    return Actor(user_id=x_user_id, role=x_user_role, driver_id=x_driver_id)
