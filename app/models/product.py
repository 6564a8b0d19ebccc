"""
Product listing model.
"""
from typing import Optional
import uuid
from decimal import Decimal
from sqlalchemy import String, Text, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Product(Base):
    """Product listing owned by the user who created it."""

    __tablename__ = "products"

    # Foreign keys
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False
    )

    # Listing details
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Relative URL of the stored image, e.g. /uploads/<file>
    image_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    __table_args__ = (
        CheckConstraint("price > 0", name="positive_price"),
        Index("idx_products_user_id", "user_id"),
        Index("idx_products_category_id", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name}, price={self.price})>"
