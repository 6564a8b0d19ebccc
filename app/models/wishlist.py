"""
Wishlist entry model.
"""
import uuid
from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class WishlistItem(Base):
    """A product saved to a user's wishlist."""

    __tablename__ = "wishlist_items"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )

    # The store enforces one entry per (user, product)
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_wishlist_items_user_product"),
    )

    def __repr__(self) -> str:
        return f"<WishlistItem(user_id={self.user_id}, product_id={self.product_id})>"
