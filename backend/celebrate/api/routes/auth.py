"""
Authentication endpoints: register, login and token introspection.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from celebrate.db.session import get_db
from celebrate.core.security import CurrentUser, get_current_user
from celebrate.schemas.user import UserCreate, UserResponse, UserLogin, Token, MeResponse, Principal
from celebrate.services.auth_service import register_user, authenticate_user
from celebrate.services.rate_limit_service import RateLimit

router = APIRouter(prefix="/auth", tags=["Authentication"], dependencies=[Depends(RateLimit("auth"))])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a user or owner account. Admin accounts are never self-registered."""
    user = await register_user(db, user_data)
    return user


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token, user = await authenticate_user(db, login_data)
    return Token(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=MeResponse)
async def me(user: CurrentUser = Depends(get_current_user)):
    """Identity and role encoded in the caller's token."""
    return MeResponse(user=Principal(id=user.id, role=user.role, name=user.name))
