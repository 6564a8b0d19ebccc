"""
Pydantic schemas for wishlist entries.
"""
from datetime import datetime
import uuid
from pydantic import BaseModel

from app.schemas.product import ProductResponse


class WishlistAdd(BaseModel):
    """Schema for adding a product to the wishlist."""
    product_id: uuid.UUID


class WishlistEntry(BaseModel):
    """A wishlist entry with its product."""
    product: ProductResponse
    added_at: datetime


class WishlistResponse(BaseModel):
    """Paginated wishlist response."""
    items: list[WishlistEntry]
    total: int
    page: int
    page_size: int
    pages: int
