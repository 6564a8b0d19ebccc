"""
Account administration endpoints.

``/admin/admins`` and ``/admin/accounts`` are reserved for super admins and
never act on the caller's own account. ``/admin/users`` is open to every
admin tier.
"""
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import CallerContext
from app.core.config import settings
from app.core.database import get_db
from app.core.security import get_caller
from app.schemas.user import AdminCreate, AdminUpdate, UserResponse, UserListResponse
from app.services.account_service import AccountService

router = APIRouter(prefix="/admin", tags=["Administration"])


# Admin accounts

@router.get("/admins", response_model=UserListResponse)
async def list_admins(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """List admin and super admin accounts."""
    result = await AccountService(db).list_admins(caller, page, page_size)
    return UserListResponse(**result.as_dict())


@router.post("/admins", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    admin_data: AdminCreate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an admin account.

    - **tier**: ``admin`` (default) or ``super_admin``
    """
    return await AccountService(db).create_admin(caller, admin_data)


@router.put("/admins/{admin_id}", response_model=UserResponse)
async def update_admin(
    admin_id: uuid.UUID,
    admin_data: AdminUpdate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Update another admin account. Only provided fields change."""
    return await AccountService(db).update_admin(caller, admin_id, admin_data)


@router.delete("/admins/{admin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_admin(
    admin_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Delete another admin account."""
    await AccountService(db).delete_admin(caller, admin_id)


@router.post("/accounts/{account_id}/promote", response_model=UserResponse)
async def promote_account(
    account_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Raise an account by one tier (user to admin, admin to super admin)."""
    return await AccountService(db).change_tier(caller, account_id, promote=True)


@router.post("/accounts/{account_id}/demote", response_model=UserResponse)
async def demote_account(
    account_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Lower an account by one tier (super admin to admin, admin to user)."""
    return await AccountService(db).change_tier(caller, account_id, promote=False)


# Regular user accounts

@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """List ``user``-tier accounts."""
    result = await AccountService(db).list_users(caller, page, page_size)
    return UserListResponse(**result.as_dict())


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Delete a ``user``-tier account along with its products and wishlist."""
    await AccountService(db).delete_user(caller, user_id)
