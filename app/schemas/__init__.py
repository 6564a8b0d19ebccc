"""
Pydantic schemas for request/response validation.
"""
from app.schemas.user import (
    UserBase, UserCreate, UserResponse, UserListResponse, AdminCreate, AdminUpdate,
    Token, TokenRefresh, LoginRequest, LoginResponse
)
from app.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryDetail,
    CategoryTreeNode, CategoryListResponse
)
from app.schemas.product import (
    ProductBase, ProductCreate, ProductUpdate, ProductResponse,
    ProductFilters, ProductListResponse, ProductDeleteResponse
)
from app.schemas.wishlist import WishlistAdd, WishlistEntry, WishlistResponse

__all__ = [
    # User schemas
    "UserBase", "UserCreate", "UserResponse", "UserListResponse", "AdminCreate", "AdminUpdate",
    "Token", "TokenRefresh", "LoginRequest", "LoginResponse",

    # Category schemas
    "CategoryCreate", "CategoryUpdate", "CategoryResponse", "CategoryDetail",
    "CategoryTreeNode", "CategoryListResponse",

    # Product schemas
    "ProductBase", "ProductCreate", "ProductUpdate", "ProductResponse",
    "ProductFilters", "ProductListResponse", "ProductDeleteResponse",

    # Wishlist schemas
    "WishlistAdd", "WishlistEntry", "WishlistResponse",
]
