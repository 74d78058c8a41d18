"""
Authentication API endpoints for user registration, login, and token management.
"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from stockledger.core.database import get_db
from stockledger.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
    get_current_user
)
from stockledger.core.config import settings
from stockledger.error_handlers import Conflict, Forbidden, Unauthenticated, ValidationFailed
from stockledger.logging_config import get_logger
from stockledger.middleware import limiter
from stockledger.models.user import User
from stockledger.schemas.user import (
    UserCreate,
    UserResponse,
    LoginRequest,
    LoginResponse,
    TokenRefresh,
    Token,
    UserUpdate,
    UserChangePassword
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = get_logger("auth")


def _set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=access_token,
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.auth_cookie_secure
    )


async def _username_taken(db: AsyncSession, username: str) -> bool:
    result = await db.execute(select(User.id).where(User.username == username))
    return result.first() is not None


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user account.

    - **username**: Unique login name
    - **password**: Minimum 6 characters
    - **name**: Optional display name
    - **email**: Optional email address
    """
    if await _username_taken(db, user_data.username):
        raise Conflict("User", "username", user_data.username)

    new_user = User(
        username=user_data.username,
        password_hash=get_password_hash(user_data.password),
        name=user_data.name,
        email=user_data.email,
        role="user",
        is_active=True
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info(f"User registered: {new_user.username}")
    return new_user


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user and return JWT tokens.

    The access token is also set as an http-only cookie.
    """
    result = await db.execute(
        select(User).where(User.username == credentials.username)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Failed login for '{credentials.username}'")
        raise Unauthenticated("Incorrect username or password")

    if not user.is_active:
        raise Forbidden("User account is inactive")

    access_token = create_access_token(subject=user.id)
    refresh_token = create_refresh_token(subject=user.id)
    _set_auth_cookie(response, access_token)

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.post("/refresh", response_model=Token)
async def refresh_token(
    token_data: TokenRefresh,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair."""
    user_id = verify_refresh_token(token_data.refresh_token)

    result = await db.execute(
        select(User).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise Unauthenticated("Invalid refresh token")

    access_token = create_access_token(subject=user.id)
    _set_auth_cookie(response, access_token)

    return Token(
        access_token=access_token,
        refresh_token=create_refresh_token(subject=user.id),
        token_type="bearer"
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current authenticated user's profile information."""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update current user's profile information.

    - **username**: New login name, must be free
    - **name**: Display name
    - **email**: Email address
    """
    if user_update.username and user_update.username != current_user.username:
        if await _username_taken(db, user_update.username):
            raise Conflict("User", "username", user_update.username)
        current_user.username = user_update.username

    if user_update.name is not None:
        current_user.name = user_update.name

    if user_update.email is not None:
        current_user.email = user_update.email

    await db.commit()
    await db.refresh(current_user)

    return current_user


@router.post("/change-password", status_code=status.HTTP_200_OK)
async def change_password(
    password_data: UserChangePassword,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change current user's password after checking the current one."""
    if not verify_password(password_data.current_password, current_user.password_hash):
        raise ValidationFailed("Incorrect current password")

    current_user.password_hash = get_password_hash(password_data.new_password)
    await db.commit()

    logger.info(f"Password changed for {current_user.username}")
    return {"message": "Password updated successfully"}


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response):
    """Clear the auth cookie. Bearer tokens simply expire."""
    response.delete_cookie(settings.auth_cookie_name)
    return {"message": "Logged out successfully"}
