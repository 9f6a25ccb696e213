"""
Account endpoints: register, login and the current-user profile.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import Actor, get_current_actor
from app.db.session import get_db
from app.schemas.user import ProfileResponse, Token, UserCreate, UserLogin, UserResponse
from app.services import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await auth_service.register_user(db, user_data)


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Exchange credentials for a bearer token carrying id and role."""
    return Token(access_token=await auth_service.authenticate_user(db, login_data))


@router.get("/me", response_model=ProfileResponse)
async def me(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.get_profile(db, actor)
