"""
Authentication service handling registration, login and account lookup.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from celebrate.models.user import User
from celebrate.schemas.user import UserCreate, UserLogin
from celebrate.core.security import CurrentUser, hash_password, verify_password, create_access_token
from celebrate.core.logging import get_logger

logger = get_logger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(data={"sub": user.id, "role": user.role, "name": user.name})


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with hashed password.
    Raises 409 if the email already exists.
    """
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        name=user_data.name.strip(),
        email=email,
        role=user_data.role,
        hashed_password=hash_password(user_data.password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[str, User]:
    """
    Authenticate user and return a JWT access token with the user row.
    Raises 401 if credentials are invalid.
    """
    email = login_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    logger.info("user_logged_in", user_id=user.id)
    return issue_token(user), user


async def get_account(db: AsyncSession, principal: CurrentUser) -> User:
    """Load the caller's user row; tokens for removed or deactivated accounts are rejected."""
    user = await db.get(User, principal.id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user
