"""
User model for authentication and authorization.
"""
from sqlalchemy import String, Boolean, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.core.authorization import UserTier


class User(Base):
    """User account model."""

    __tablename__ = "users"

    # User credentials
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile information
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Privilege tier
    tier: Mapped[str] = mapped_column(String(20), default=UserTier.USER.value, nullable=False)

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "tier IN ('user', 'admin', 'super_admin')",
            name="valid_tier"
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, tier={self.tier})>"
