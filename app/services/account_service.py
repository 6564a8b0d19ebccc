"""
Account registration and administration.

Admin-tier accounts are managed by super admins only, and never the caller's
own account. Regular user accounts can be listed and removed by any admin.
"""
from typing import Optional, Sequence
import uuid

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import (
    ADMIN_TIERS,
    Action,
    CallerContext,
    Target,
    UserTier,
    authorize,
)
from app.core.security import get_password_hash, verify_password
from app.error_handlers import ResourceNotFoundError, ValidationError
from app.logging_config import get_logger
from app.models.product import Product
from app.models.user import User
from app.models.wishlist import WishlistItem
from app.schemas.user import UserCreate, AdminCreate, AdminUpdate
from app.services.pagination import Page, fetch_page
from app.utils import delete_image

logger = get_logger("accounts")


class AccountService:
    """Account operations for one request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _check_available(
        self,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await self.db.execute(query)
        taken = result.scalars().all()
        if not taken:
            return

        errors = {}
        if username and any(user.username == username for user in taken):
            errors["username"] = "Username already taken"
        if email and any(user.email == email for user in taken):
            errors["email"] = "Email already registered"
        raise ValidationError("Username or email already exists", errors)

    async def _create(self, data: UserCreate, tier: UserTier) -> User:
        await self._check_available(data.username, data.email)
        user = User(
            username=data.username,
            name=data.name,
            email=data.email,
            password_hash=get_password_hash(data.password),
            tier=tier.value,
            is_active=True
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def _get_account(self, account_id: uuid.UUID, tiers: Sequence[UserTier], resource: str) -> User:
        user = await self.db.get(User, account_id)
        if user is None or UserTier(user.tier) not in tiers:
            raise ResourceNotFoundError(resource, account_id)
        return user

    async def register(self, data: UserCreate) -> User:
        """Self-registration always yields a ``user``-tier account."""
        user = await self._create(data, UserTier.USER)
        logger.info(f"User registered: {user.id} ({user.username})")
        return user

    async def authenticate(self, login: str, password: str) -> Optional[User]:
        """Match ``login`` against username or email and verify the password."""
        result = await self.db.execute(
            select(User).where(or_(User.username == login, User.email == login))
        )
        user = result.scalars().first()
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def ensure_bootstrap_admin(self, username: str, email: str, password: str) -> Optional[User]:
        """Create the initial super admin unless an account with that username exists."""
        result = await self.db.execute(select(User).where(User.username == username))
        if result.scalar_one_or_none() is not None:
            return None

        admin = User(
            username=username,
            name="Administrator",
            email=email,
            password_hash=get_password_hash(password),
            tier=UserTier.SUPER_ADMIN.value,
            is_active=True
        )
        self.db.add(admin)
        await self.db.commit()
        logger.warning(f"Bootstrap super admin created: {username}")
        return admin

    # Admin accounts

    async def list_admins(self, caller: CallerContext, page: int, page_size: int) -> Page:
        authorize(caller, Action.MANAGE_ADMIN)
        query = (
            select(User)
            .where(User.tier.in_([tier.value for tier in ADMIN_TIERS]))
            .order_by(User.created_at, User.id)
        )
        return await fetch_page(self.db, query, page, page_size)

    async def create_admin(self, caller: CallerContext, data: AdminCreate) -> User:
        authorize(caller, Action.MANAGE_ADMIN)
        if data.tier not in ADMIN_TIERS:
            raise ValidationError("Invalid tier", {"tier": "Admin accounts must be admin or super_admin"})

        admin = await self._create(data, data.tier)
        logger.info(f"Admin created: {admin.id} ({admin.username}, {admin.tier}) by {caller.id}")
        return admin

    async def update_admin(self, caller: CallerContext, admin_id: uuid.UUID, data: AdminUpdate) -> User:
        authorize(caller, Action.MANAGE_ADMIN, Target(record_id=admin_id))
        admin = await self._get_account(admin_id, ADMIN_TIERS, "Admin")
        authorize(caller, Action.MANAGE_ADMIN, Target(record_id=admin.id, tier=UserTier(admin.tier)))

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No update data provided")
        await self._check_available(changes.get("username"), changes.get("email"), exclude_id=admin.id)

        password = changes.pop("password", None)
        for field, value in changes.items():
            setattr(admin, field, value)
        if password:
            admin.password_hash = get_password_hash(password)

        await self.db.commit()
        logger.info(f"Admin updated: {admin.id} by {caller.id}")
        return admin

    async def delete_admin(self, caller: CallerContext, admin_id: uuid.UUID) -> None:
        authorize(caller, Action.MANAGE_ADMIN, Target(record_id=admin_id))
        admin = await self._get_account(admin_id, ADMIN_TIERS, "Admin")
        authorize(caller, Action.MANAGE_ADMIN, Target(record_id=admin.id, tier=UserTier(admin.tier)))

        await self._delete_account(admin)
        logger.info(f"Admin deleted: {admin_id} by {caller.id}")

    async def change_tier(self, caller: CallerContext, account_id: uuid.UUID, promote: bool) -> User:
        """Move an account one tier up or down."""
        authorize(caller, Action.MANAGE_ADMIN, Target(record_id=account_id))
        account = await self.db.get(User, account_id)
        if account is None:
            raise ResourceNotFoundError("Account", account_id)

        current = UserTier(account.tier)
        new_tier = current.promoted() if promote else current.demoted()
        if new_tier is None:
            direction = "promoted" if promote else "demoted"
            raise ValidationError(
                f"Account cannot be {direction} further",
                {"tier": f"Account is already {current.value}"}
            )
        authorize(
            caller,
            Action.MANAGE_ADMIN,
            Target(record_id=account.id, tier=max(current, new_tier, key=lambda tier: tier.rank))
        )

        account.tier = new_tier.value
        await self.db.commit()
        logger.info(f"Account {account.id} changed tier {current.value} -> {new_tier.value} by {caller.id}")
        return account

    # Regular user accounts

    async def list_users(self, caller: CallerContext, page: int, page_size: int) -> Page:
        authorize(caller, Action.MANAGE_USER)
        query = (
            select(User)
            .where(User.tier == UserTier.USER.value)
            .order_by(User.created_at, User.id)
        )
        return await fetch_page(self.db, query, page, page_size)

    async def delete_user(self, caller: CallerContext, user_id: uuid.UUID) -> None:
        authorize(caller, Action.MANAGE_USER, Target(record_id=user_id))
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        # Admin-tier targets escalate to the admin-management rule
        authorize(caller, Action.MANAGE_USER, Target(record_id=user.id, tier=UserTier(user.tier)))
        if UserTier(user.tier) != UserTier.USER:
            raise ResourceNotFoundError("User", user_id)

        await self._delete_account(user)
        logger.info(f"User deleted: {user_id} by {caller.id}")

    async def _delete_account(self, account: User) -> None:
        """Remove an account together with its products, their images and wishlist entries."""
        result = await self.db.execute(select(Product).where(Product.user_id == account.id))
        products = result.scalars().all()
        product_ids = [product.id for product in products]
        image_urls = [product.image_url for product in products if product.image_url]

        await self.db.execute(delete(WishlistItem).where(WishlistItem.user_id == account.id))
        if product_ids:
            await self.db.execute(delete(WishlistItem).where(WishlistItem.product_id.in_(product_ids)))
            await self.db.execute(delete(Product).where(Product.id.in_(product_ids)))
        await self.db.delete(account)
        await self.db.commit()

        for image_url in image_urls:
            delete_image(image_url)
