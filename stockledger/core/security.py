"""
Security utilities for authentication and authorization.
Handles JWT tokens, password hashing, and user verification.
"""
from datetime import timedelta
from typing import Optional, Any
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from stockledger.core.config import settings
from stockledger.core.database import get_db
from stockledger.error_handlers import Unauthenticated, Forbidden
from stockledger.utils import utcnow


# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds
)

# Bearer token is optional here; the auth cookie is the fallback
security_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def _create_token(
    subject: str | uuid.UUID,
    token_type: str,
    expires_delta: timedelta,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    now = utcnow()
    to_encode = {
        "exp": now + expires_delta,
        "sub": str(subject),
        "type": token_type,
        "iat": now
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_access_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: User ID or identifier
        expires_delta: Token expiration time
        additional_claims: Extra data to include in token

    Returns:
        Encoded JWT token string
    """
    return _create_token(
        subject,
        "access",
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
        additional_claims
    )


def create_refresh_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT refresh token."""
    return _create_token(
        subject,
        "refresh",
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days)
    )


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        Unauthenticated: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise Unauthenticated("Could not validate credentials")


def _subject_as_uuid(payload: dict[str, Any], expected_type: str) -> uuid.UUID:
    if payload.get("type", "access") != expected_type:
        raise Unauthenticated(f"Invalid token type. {expected_type.capitalize()} token required.")

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise Unauthenticated("Invalid authentication credentials")

    try:
        return uuid.UUID(user_id_str)
    except ValueError:
        raise Unauthenticated("Invalid user ID in token")


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme)
) -> uuid.UUID:
    """
    Extract and validate user ID from the bearer token or the auth cookie.

    Raises:
        Unauthenticated: If no token is present or it is invalid
    """
    token = credentials.credentials if credentials else request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise Unauthenticated("Not authenticated")

    return _subject_as_uuid(decode_token(token), "access")


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the current authenticated user from database.

    Raises:
        Unauthenticated: If the user no longer exists
        Forbidden: If the user is inactive
    """
    # Import here to avoid circular dependency
    from stockledger.models.user import User

    result = await db.execute(
        select(User).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise Unauthenticated("User not found")

    if not user.is_active:
        raise Forbidden("Inactive user")

    return user


def verify_refresh_token(token: str) -> uuid.UUID:
    """Verify a refresh token and extract user ID."""
    return _subject_as_uuid(decode_token(token), "refresh")
