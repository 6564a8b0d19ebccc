"""
Category model. Categories form a forest through the nullable parent reference.
"""
from typing import Optional
import uuid
from sqlalchemy import String, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Category(Base):
    """Product category, optionally nested under a parent category."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True
    )

    __table_args__ = (
        Index("idx_categories_parent_id", "parent_id"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name}, parent_id={self.parent_id})>"
