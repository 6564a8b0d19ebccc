"""
Security utilities for authentication.
Handles JWT tokens, password hashing, and resolving the calling user.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.authorization import CallerContext


# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds
)

# HTTP Bearer token scheme
security_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def _credentials_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: User ID
        expires_delta: Token expiration time
        additional_claims: Extra data to include in token (e.g. tier, for clients)

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "type": "access",
        "iat": now
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_refresh_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT refresh token.

    Args:
        subject: User ID
        expires_delta: Token expiration time

    Returns:
        Encoded JWT refresh token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days))

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "type": "refresh",
        "iat": now
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise _credentials_exception("Could not validate credentials")


def _subject_of(payload: dict[str, Any], expected_type: str) -> uuid.UUID:
    if payload.get("type", "access") != expected_type:
        raise _credentials_exception(f"Invalid token type. {expected_type.capitalize()} token required.")

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise _credentials_exception("Invalid authentication credentials")

    try:
        return uuid.UUID(user_id_str)
    except ValueError:
        raise _credentials_exception("Invalid user ID in token")


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme)
) -> uuid.UUID:
    """
    Extract and validate user ID from the bearer access token.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if credentials is None:
        raise _credentials_exception("No token provided")

    payload = decode_token(credentials.credentials)
    return _subject_of(payload, "access")


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the current authenticated user from database.

    The user record is re-read on every request so tier changes take effect
    immediately, whatever the token claims.

    Raises:
        HTTPException: 401 if the user no longer exists, 403 if inactive
    """
    # Import here to avoid circular dependency
    from app.models.user import User

    user = await db.get(User, user_id)

    if user is None:
        raise _credentials_exception("User no longer exists")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


async def get_caller(current_user=Depends(get_current_user)) -> CallerContext:
    """Resolve the authenticated caller to an ``{id, tier}`` context."""
    return CallerContext.from_user(current_user)


def verify_refresh_token(token: str) -> uuid.UUID:
    """
    Verify a refresh token and extract user ID.

    Raises:
        HTTPException: If token is invalid or not a refresh token
    """
    payload = decode_token(token)
    return _subject_of(payload, "refresh")
