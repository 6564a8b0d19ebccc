"""
Wishlist operations.

Entries pointing at products that no longer exist are purged lazily, the
next time the owner's wishlist is read.
"""
import uuid

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Action, CallerContext, Target, authorize
from app.error_handlers import ResourceNotFoundError, DuplicateResourceError
from app.logging_config import get_logger
from app.models.product import Product
from app.models.wishlist import WishlistItem
from app.services.pagination import Page, fetch_page

logger = get_logger("wishlist")


class WishlistService:
    """Wishlist operations for one request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, caller: CallerContext, product_id: uuid.UUID) -> tuple[WishlistItem, Product]:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ResourceNotFoundError("Product", product_id)

        # Fast path only; the unique constraint is the real guard
        existing = await self.db.execute(
            select(WishlistItem.id).where(
                WishlistItem.user_id == caller.id,
                WishlistItem.product_id == product_id
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateResourceError("Wishlist item", "product_id", str(product_id))

        item = WishlistItem(user_id=caller.id, product_id=product_id)
        self.db.add(item)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceError("Wishlist item", "product_id", str(product_id))

        logger.info(f"Product {product_id} added to wishlist of user {caller.id}")
        return item, product

    async def purge_missing_products(self, user_id: uuid.UUID) -> int:
        """Delete the user's entries whose product has been removed."""
        result = await self.db.execute(
            delete(WishlistItem)
            .where(
                WishlistItem.user_id == user_id,
                WishlistItem.product_id.not_in(select(Product.id))
            )
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        if removed:
            await self.db.commit()
            logger.info(f"Cleaned up {removed} wishlist items with deleted products for user {user_id}")
        return removed

    async def list_for(
        self,
        caller: CallerContext,
        user_id: uuid.UUID,
        page: int,
        page_size: int
    ) -> tuple[Page, dict[uuid.UUID, Product]]:
        """
        One page of ``user_id``'s wishlist, oldest first. Private to the
        owner and admin tiers.

        Returns:
            The page of entries and their products keyed by product id.
        """
        authorize(caller, Action.VIEW_PRIVATE, Target(owner_id=user_id))
        await self.purge_missing_products(user_id)

        query = (
            select(WishlistItem)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at, WishlistItem.id)
        )
        page_result = await fetch_page(self.db, query, page, page_size)

        product_ids = [item.product_id for item in page_result.items]
        products: dict[uuid.UUID, Product] = {}
        if product_ids:
            result = await self.db.execute(select(Product).where(Product.id.in_(product_ids)))
            products = {product.id: product for product in result.scalars().all()}

        return page_result, products

    async def remove(self, caller: CallerContext, product_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(WishlistItem).where(
                WishlistItem.user_id == caller.id,
                WishlistItem.product_id == product_id
            )
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise ResourceNotFoundError("Wishlist item", product_id)

        await self.db.delete(item)
        await self.db.commit()
        logger.info(f"Product {product_id} removed from wishlist of user {caller.id}")
