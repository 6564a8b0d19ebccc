"""
Pydantic schemas for User model, authentication and account management.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, EmailStr, Field, ConfigDict

from app.core.authorization import UserTier

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


# Base schemas
class UserBase(BaseModel):
    """Base user schema with common fields."""
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr


class UserCreate(UserBase):
    """Schema for user registration."""
    password: str = Field(..., min_length=6, max_length=100)


class UserResponse(UserBase):
    """Schema for user response. Never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tier: UserTier
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    """Paginated account list response."""
    items: list[UserResponse]
    total: int
    page: int
    page_size: int
    pages: int


# Account management schemas
class AdminCreate(UserCreate):
    """Schema for creating an admin-tier account."""
    tier: UserTier = UserTier.ADMIN


class AdminUpdate(BaseModel):
    """Schema for updating an admin account. Only provided fields change."""
    username: Optional[str] = Field(None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=100)


# Authentication schemas
class Token(BaseModel):
    """Schema for token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Schema for token refresh request."""
    refresh_token: str


class LoginRequest(BaseModel):
    """Schema for login request. ``login`` is a username or an email address."""
    login: str = Field(..., min_length=1)
    password: str


class LoginResponse(Token):
    """Schema for login response."""
    user: UserResponse
