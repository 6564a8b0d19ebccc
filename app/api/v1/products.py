"""
Products API endpoints.

Create and update take multipart form data so an image can be uploaded
alongside the product fields.
"""
from decimal import Decimal
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import CallerContext
from app.core.config import settings
from app.core.database import get_db
from app.core.security import get_caller
from app.error_handlers import ValidationError
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductFilters,
    ProductListResponse,
    ProductDeleteResponse
)
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


def _parse_form(schema, fields: dict):
    """Validate form fields against ``schema``, reporting errors per field."""
    try:
        return schema(**{key: value for key, value in fields.items() if value is not None})
    except PydanticValidationError as e:
        errors = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "body"
            errors.setdefault(field, error["msg"])
        raise ValidationError("Invalid product data", errors)


def _image_or_none(image: Optional[UploadFile]) -> Optional[UploadFile]:
    # Browsers send an empty part when no file was chosen
    if image is None or not image.filename:
        return None
    return image


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(...),
    description: str = Form(...),
    price: str = Form(...),
    category_id: str = Form(...),
    image: Optional[UploadFile] = File(None),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a product owned by the caller.

    - **name**: Product name
    - **description**: Product description
    - **price**: Positive price with at most two decimals
    - **category_id**: Existing category
    - **image**: Optional image file (jpg, jpeg, png, gif, webp)
    """
    data = _parse_form(ProductCreate, {
        "name": name,
        "description": description,
        "price": price,
        "category_id": category_id
    })
    return await ProductService(db).create(caller, data, _image_or_none(image))


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = None,
    category_id: Optional[uuid.UUID] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    List products with pagination and filtering, newest first.

    - **search**: Case-insensitive match on the product name
    - **category_id**: Products in this category or any of its subcategories
    - **min_price** / **max_price**: Price bounds (inclusive)
    """
    filters = ProductFilters(
        search=search,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price
    )
    result = await ProductService(db).list_products(filters, page, page_size)
    return ProductListResponse(**result.as_dict())


@router.get("/mine", response_model=ProductListResponse)
async def list_my_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's own products."""
    result = await ProductService(db).list_owned(caller.id, page, page_size)
    return ProductListResponse(**result.as_dict())


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Get a single product."""
    return await ProductService(db).get(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a product (owner or admin). Only provided fields change; a new
    image replaces the stored one.
    """
    data = _parse_form(ProductUpdate, {
        "name": name,
        "description": description,
        "price": price,
        "category_id": category_id
    })
    return await ProductService(db).update(caller, product_id, data, _image_or_none(image))


@router.delete("/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Delete a product and its stored image (owner or admin)."""
    await ProductService(db).delete(caller, product_id)
    return ProductDeleteResponse(message="Product deleted successfully", product_id=product_id)
