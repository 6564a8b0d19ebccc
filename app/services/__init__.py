"""Business operations. Each service wraps one request's database session."""
from app.services.account_service import AccountService
from app.services.category_service import CategoryService
from app.services.category_tree import CategoryTree, MAX_DEPTH
from app.services.product_service import ProductService
from app.services.wishlist_service import WishlistService

__all__ = [
    "AccountService",
    "CategoryService",
    "CategoryTree",
    "MAX_DEPTH",
    "ProductService",
    "WishlistService",
]
