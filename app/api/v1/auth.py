"""
Authentication API endpoints for user registration, login, and token management.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import (
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
    get_current_user
)
from app.models.user import User
from app.schemas.user import (
    UserCreate,
    UserResponse,
    LoginRequest,
    LoginResponse,
    TokenRefresh,
    Token
)
from app.services.account_service import AccountService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_tokens(user: User) -> dict:
    return {
        "access_token": create_access_token(
            subject=user.id,
            additional_claims={"tier": user.tier}
        ),
        "refresh_token": create_refresh_token(subject=user.id),
        "token_type": "bearer"
    }


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user account. New accounts always start at the ``user`` tier.

    - **username**: 3-50 letters, digits or underscores
    - **name**: Display name
    - **email**: Valid email address
    - **password**: Minimum 6 characters
    """
    return await AccountService(db).register(user_data)


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user and return JWT tokens.

    - **login**: Username or email address
    - **password**: User's password
    """
    user = await AccountService(db).authenticate(credentials.login, credentials.password)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username/email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return LoginResponse(**_issue_tokens(user), user=UserResponse.model_validate(user))


@router.post("/refresh", response_model=Token)
async def refresh_token(
    token_data: TokenRefresh,
    db: AsyncSession = Depends(get_db)
):
    """
    Exchange a refresh token for a new access/refresh token pair.
    """
    user_id = verify_refresh_token(token_data.refresh_token)

    # Verify user still exists and is active
    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Token(**_issue_tokens(user))


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current authenticated user's profile information.

    Requires valid access token in Authorization header.
    """
    return current_user
