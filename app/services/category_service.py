"""
Category create/read/update/delete, gated by the authorization model and the
hierarchy checks in ``CategoryTree``.
"""
from typing import Optional
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import Action, CallerContext, authorize
from app.error_handlers import ResourceNotFoundError, ResourceInUseError, ValidationError
from app.logging_config import get_logger
from app.models.category import Category
from app.models.product import Product
from app.schemas.category import CategoryCreate, CategoryUpdate, CategoryTreeNode
from app.services.category_tree import CategoryTree
from app.services.pagination import Page, fetch_page

logger = get_logger("categories")


class CategoryService:
    """Category operations for one request."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tree = CategoryTree(db)

    async def get(self, category_id: uuid.UUID) -> Category:
        category = await self.db.get(Category, category_id)
        if category is None:
            raise ResourceNotFoundError("Category", category_id)
        return category

    async def get_with_depth(self, category_id: uuid.UUID) -> tuple[Category, int]:
        category = await self.get(category_id)
        return category, await self.tree.compute_depth(category_id)

    async def list_categories(self, page: int, page_size: int) -> Page:
        query = select(Category).order_by(Category.created_at, Category.id)
        return await fetch_page(self.db, query, page, page_size)

    async def get_tree(self, root_parent_id: Optional[uuid.UUID] = None) -> list[CategoryTreeNode]:
        return await self.tree.build_tree(root_parent_id)

    async def create(self, caller: CallerContext, data: CategoryCreate) -> Category:
        authorize(caller, Action.MANAGE_CATEGORY)
        await self.tree.validate_parent_assignment(None, data.parent_id)

        category = Category(name=data.name, parent_id=data.parent_id)
        self.db.add(category)
        await self._commit_within_bounds(category)

        logger.info(f"Category created: {category.id} '{category.name}' (parent={category.parent_id})")
        return category

    async def update(self, caller: CallerContext, category_id: uuid.UUID, data: CategoryUpdate) -> Category:
        authorize(caller, Action.MANAGE_CATEGORY)
        category = await self.get(category_id)

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No update data provided")
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Missing required fields", {"name": "Name cannot be empty"})

        if "parent_id" in changes and changes["parent_id"] != category.parent_id:
            await self.tree.validate_parent_assignment(category.id, changes["parent_id"])
            category.parent_id = changes["parent_id"]
        if "name" in changes:
            category.name = changes["name"]

        await self._commit_within_bounds(category)

        logger.info(f"Category updated: {category.id} '{category.name}' (parent={category.parent_id})")
        return category

    async def delete(self, caller: CallerContext, category_id: uuid.UUID) -> None:
        """Delete a category. Refused while subcategories or products still reference it."""
        authorize(caller, Action.MANAGE_CATEGORY)
        category = await self.get(category_id)

        children = (await self.db.execute(
            select(func.count()).select_from(Category).where(Category.parent_id == category_id)
        )).scalar() or 0
        products = (await self.db.execute(
            select(func.count()).select_from(Product).where(Product.category_id == category_id)
        )).scalar() or 0
        if children or products:
            raise ResourceInUseError(
                "Category",
                category_id,
                {"subcategories": children, "products": products}
            )

        await self.db.delete(category)
        await self.db.commit()
        logger.info(f"Category deleted: {category_id}")

    async def _commit_within_bounds(self, category: Category) -> None:
        try:
            await self.db.flush()
            await self.tree.assert_within_bounds(category.id)
        except Exception:
            await self.db.rollback()
            raise
        await self.db.commit()
