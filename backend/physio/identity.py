# backend/physio/identity.py
"""
Caller identity forwarded by the gateway.

The gateway authenticates the request and passes:
  X-User-Id    integer user id
  X-User-Role  "patient" | "admin"

The backend only authorizes; ownership is always compared on int ids.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status


@dataclass(frozen=True)
class Actor:
    user_id: int
    is_admin: bool = False


def get_actor(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Actor:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id header")

    return Actor(user_id=user_id, is_admin=(x_user_role or "").strip().lower() == "admin")


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return actor
