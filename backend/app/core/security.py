"""
Password hashing, JWT issuance and the acting-user context.

Workflow operations never look up "the current user" on their own: routes
resolve an Actor from the bearer token and pass it in explicitly.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.exceptions import Unauthorized

settings = get_settings()

# Roles
STATE_ADMIN_MANAGER = "state_admin_manager"
LEAD_ADMIN = "lead_admin"
ADMIN = "admin"
EVENT_MANAGER = "event_manager"
TEAM_MANAGER = "team_manager"
PLAYER = "player"
HOTEL_MANAGER = "hotel_manager"

USER_ROLES = (
    STATE_ADMIN_MANAGER,
    LEAD_ADMIN,
    ADMIN,
    EVENT_MANAGER,
    TEAM_MANAGER,
    PLAYER,
    HOTEL_MANAGER,
)

# Roles allowed to act as event manager (team approval, hotel assignment)
EVENT_MANAGER_ROLES = frozenset({EVENT_MANAGER, ADMIN, LEAD_ADMIN, STATE_ADMIN_MANAGER})

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str

    @property
    def is_event_manager(self) -> bool:
        return self.role in EVENT_MANAGER_ROLES


def require_role(actor: Actor, allowed, action: str) -> None:
    """Raise Unauthorized unless the actor holds one of the allowed roles."""
    if isinstance(allowed, str):
        allowed = {allowed}
    if actor.role not in allowed:
        raise Unauthorized(f"Role '{actor.role}' cannot {action}")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed_password.encode())
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = dict(data)
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    """Resolve the acting user from the bearer token."""
    if credentials is None:
        raise _credentials_error("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _credentials_error("Invalid authentication token")

    try:
        user_id = int(payload["sub"])
        role = payload["role"]
    except (KeyError, TypeError, ValueError):
        raise _credentials_error("Invalid token payload")

    return Actor(user_id=user_id, role=role)