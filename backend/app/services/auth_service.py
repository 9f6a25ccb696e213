"""
Account registration, login and the current-user profile.

Tokens carry the user id and role so every later request can build an
Actor without touching the users table. The profile lookup does hit the
table, which is where a deactivated account is noticed after login.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.user import User
from app.schemas.user import UserCreate, UserLogin
from app.core.security import (
    ADMIN,
    EVENT_MANAGER,
    HOTEL_MANAGER,
    LEAD_ADMIN,
    PLAYER,
    STATE_ADMIN_MANAGER,
    TEAM_MANAGER,
    Actor,
    create_access_token,
    hash_password,
    verify_password,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

ROLE_PERMISSIONS = {
    STATE_ADMIN_MANAGER: ["manage_all", "view_all", "create_events", "manage_users"],
    LEAD_ADMIN: ["manage_organization", "view_organization", "create_events", "manage_teams"],
    ADMIN: ["manage_events", "view_events", "manage_teams"],
    EVENT_MANAGER: ["manage_assigned_events", "view_assigned_events"],
    TEAM_MANAGER: ["manage_team", "view_team", "register_players"],
    PLAYER: ["view_profile", "view_assigned_events"],
    HOTEL_MANAGER: ["manage_accommodations", "view_bookings"],
}


def permissions_for(role: str) -> list[str]:
    return ROLE_PERMISSIONS.get(role, ["view_profile"])


async def _find_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """Create an account; 409 when the email is taken."""
    if await _find_by_email(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role,
        organization=user_data.organization,
        mobile_number=user_data.mobile_number,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Check credentials and issue a token whose claims are the user id
    (``sub``) and role. Bad credentials give 401, a deactivated account 403.
    """
    user = await _find_by_email(db, login_data.email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning("login_refused", user_id=user.id, reason="deactivated")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    logger.info("user_logged_in", user_id=user.id, role=user.role)
    return token


async def get_profile(db: AsyncSession, actor: Actor) -> dict:
    """The acting user's account plus the permissions their role grants."""
    user = await db.get(User, actor.user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account no longer available",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"user": user, "permissions": permissions_for(user.role)}
