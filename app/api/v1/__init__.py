"""API v1 Router."""
from fastapi import APIRouter

from app.api.v1 import auth, categories, products, wishlist, admin

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(categories.router)
api_router.include_router(products.router)
api_router.include_router(wishlist.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]
