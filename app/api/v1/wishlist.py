"""
Wishlist API endpoints.
"""
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import CallerContext
from app.core.config import settings
from app.core.database import get_db
from app.core.security import get_caller
from app.schemas.product import ProductResponse
from app.schemas.wishlist import WishlistAdd, WishlistEntry, WishlistResponse
from app.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


async def _wishlist_page(
    db: AsyncSession,
    caller: CallerContext,
    user_id: uuid.UUID,
    page: int,
    page_size: int
) -> WishlistResponse:
    result, products = await WishlistService(db).list_for(caller, user_id, page, page_size)
    entries = [
        WishlistEntry(
            product=ProductResponse.model_validate(products[item.product_id]),
            added_at=item.created_at
        )
        for item in result.items
        # A product deleted after the purge is skipped rather than reported
        if item.product_id in products
    ]
    return WishlistResponse(**{**result.as_dict(), "items": entries})


@router.post("", response_model=WishlistEntry, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    data: WishlistAdd,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Add a product to the caller's wishlist.

    Returns 404 for an unknown product and 409 when it is already listed.
    """
    item, product = await WishlistService(db).add(caller, data.product_id)
    return WishlistEntry(product=ProductResponse.model_validate(product), added_at=item.created_at)


@router.get("", response_model=WishlistResponse)
async def get_wishlist(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """The caller's wishlist, oldest entry first."""
    return await _wishlist_page(db, caller, caller.id, page, page_size)


@router.get("/users/{user_id}", response_model=WishlistResponse)
async def get_user_wishlist(
    user_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Another user's wishlist. Only the owner and admins may read it."""
    return await _wishlist_page(db, caller, user_id, page, page_size)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_wishlist(
    product_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Remove a product from the caller's wishlist."""
    await WishlistService(db).remove(caller, product_id)
