"""
Category API endpoints. Reads are open to any authenticated user; writes
require an admin tier.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import CallerContext
from app.core.config import settings
from app.core.database import get_db
from app.core.security import get_caller
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryDetail,
    CategoryTreeNode,
    CategoryListResponse
)
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


def _detail(category, depth: int) -> CategoryDetail:
    return CategoryDetail(**CategoryResponse.model_validate(category).model_dump(), depth=depth)


@router.post("", response_model=CategoryDetail, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a category (admin only).

    - **name**: Category name
    - **parent_id**: Optional parent; categories nest at most three levels deep
    """
    service = CategoryService(db)
    category = await service.create(caller, category_data)
    _, depth = await service.get_with_depth(category.id)
    return _detail(category, depth)


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """List categories as a flat, paginated list in creation order."""
    result = await CategoryService(db).list_categories(page, page_size)
    return CategoryListResponse(**result.as_dict())


@router.get("/tree", response_model=list[CategoryTreeNode])
async def get_category_tree(
    parent_id: Optional[uuid.UUID] = None,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Nested category tree.

    - **parent_id**: Return only the subtree below this category (whole tree when omitted)
    """
    return await CategoryService(db).get_tree(parent_id)


@router.get("/{category_id}", response_model=CategoryDetail)
async def get_category(
    category_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Get a single category with its depth in the hierarchy."""
    category, depth = await CategoryService(db).get_with_depth(category_id)
    return _detail(category, depth)


@router.put("/{category_id}", response_model=CategoryDetail)
async def update_category(
    category_id: uuid.UUID,
    category_data: CategoryUpdate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a category (admin only). Only provided fields change; send
    ``"parent_id": null`` to turn the category into a root.
    """
    service = CategoryService(db)
    category = await service.update(caller, category_id, category_data)
    _, depth = await service.get_with_depth(category.id)
    return _detail(category, depth)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a category (admin only). Refused with 409 while subcategories or
    products still reference it.
    """
    await CategoryService(db).delete(caller, category_id)
