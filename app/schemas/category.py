"""
Pydantic schemas for Category model.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict


class CategoryCreate(BaseModel):
    """Schema for creating a category. Omitting parent_id creates a root."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[uuid.UUID] = None


class CategoryUpdate(BaseModel):
    """
    Schema for updating a category.

    Only provided fields change; an explicit ``"parent_id": null`` turns the
    category into a root.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_id: Optional[uuid.UUID] = None


class CategoryResponse(BaseModel):
    """Schema for category response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    parent_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class CategoryDetail(CategoryResponse):
    """Category with its position in the hierarchy."""
    depth: int


class CategoryTreeNode(BaseModel):
    """Nested category tree node."""
    id: uuid.UUID
    name: str
    parent_id: Optional[uuid.UUID] = None
    depth: int
    children: list["CategoryTreeNode"] = Field(default_factory=list)


class CategoryListResponse(BaseModel):
    """Paginated flat category list response."""
    items: list[CategoryResponse]
    total: int
    page: int
    page_size: int
    pages: int


CategoryTreeNode.model_rebuild()
