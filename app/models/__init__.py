"""
SQLAlchemy models for the Shopfront application.
Import all models here to ensure they're registered with SQLAlchemy.
"""
from app.models.user import User
from app.models.category import Category
from app.models.product import Product
from app.models.wishlist import WishlistItem

__all__ = [
    "User",
    "Category",
    "Product",
    "WishlistItem",
]
