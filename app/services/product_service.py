"""
Product listing operations. Ownership is always resolved from the stored
record, never from client input.
"""
from typing import Optional
import uuid

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Action, CallerContext, Target, authorize
from app.error_handlers import ResourceNotFoundError, ValidationError
from app.logging_config import get_logger
from app.models.category import Category
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate, ProductFilters
from app.services.category_tree import CategoryTree
from app.services.pagination import Page, fetch_page
from app.utils import save_image, delete_image

logger = get_logger("products")


class ProductService:
    """Product operations for one request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, product_id: uuid.UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ResourceNotFoundError("Product", product_id)
        return product

    async def _ensure_category(self, category_id: uuid.UUID) -> None:
        if await self.db.get(Category, category_id) is None:
            raise ValidationError(
                "Invalid category",
                {"category_id": "The selected category does not exist"}
            )

    async def list_products(self, filters: ProductFilters, page: int, page_size: int) -> Page:
        """Newest first. A category filter includes its subcategories."""
        if (
            filters.min_price is not None
            and filters.max_price is not None
            and filters.max_price <= filters.min_price
        ):
            raise ValidationError(
                "Invalid price range",
                {"max_price": "Maximum price must be greater than minimum price"}
            )

        query = select(Product)
        if filters.search:
            pattern = filters.search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            query = query.where(Product.name.ilike(f"%{pattern}%", escape="\\"))
        if filters.category_id is not None:
            category_ids = await CategoryTree(self.db).subtree_ids(filters.category_id)
            query = query.where(Product.category_id.in_(category_ids))
        if filters.min_price is not None:
            query = query.where(Product.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.where(Product.price <= filters.max_price)

        query = query.order_by(Product.created_at.desc(), Product.id)
        return await fetch_page(self.db, query, page, page_size)

    async def list_owned(self, owner_id: uuid.UUID, page: int, page_size: int) -> Page:
        query = (
            select(Product)
            .where(Product.user_id == owner_id)
            .order_by(Product.created_at.desc(), Product.id)
        )
        return await fetch_page(self.db, query, page, page_size)

    async def create(
        self,
        caller: CallerContext,
        data: ProductCreate,
        image: Optional[UploadFile] = None
    ) -> Product:
        authorize(caller, Action.CREATE_PRODUCT)
        await self._ensure_category(data.category_id)

        image_url = await save_image(image) if image is not None else None
        product = Product(
            user_id=caller.id,
            name=data.name,
            description=data.description,
            price=data.price,
            category_id=data.category_id,
            image_url=image_url
        )
        self.db.add(product)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            delete_image(image_url)
            raise

        logger.info(f"Product created: {product.id} by user {caller.id}")
        return product

    async def update(
        self,
        caller: CallerContext,
        product_id: uuid.UUID,
        data: ProductUpdate,
        image: Optional[UploadFile] = None
    ) -> Product:
        """Owner or admin. Only provided fields change; a new image replaces the stored one."""
        product = await self.get(product_id)
        authorize(caller, Action.EDIT_PRODUCT, Target(record_id=product.id, owner_id=product.user_id))

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes and image is None:
            raise ValidationError("No update data provided")
        if "category_id" in changes:
            await self._ensure_category(changes["category_id"])

        new_image_url = await save_image(image) if image is not None else None
        old_image_url = product.image_url

        for field, value in changes.items():
            setattr(product, field, value)
        if new_image_url:
            product.image_url = new_image_url

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            delete_image(new_image_url)
            raise

        if new_image_url and old_image_url:
            delete_image(old_image_url)

        logger.info(f"Product updated: {product.id} by user {caller.id}")
        return product

    async def delete(self, caller: CallerContext, product_id: uuid.UUID) -> Product:
        """Owner or admin. The stored image is removed with the product."""
        product = await self.get(product_id)
        authorize(caller, Action.DELETE_PRODUCT, Target(record_id=product.id, owner_id=product.user_id))

        image_url = product.image_url
        await self.db.delete(product)
        await self.db.commit()
        delete_image(image_url)

        logger.info(f"Product deleted: {product_id} by user {caller.id}")
        return product

