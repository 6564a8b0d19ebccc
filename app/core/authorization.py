"""
Role-based authorization.

Every mutation endpoint funnels through ``authorize`` so tier ordering,
ownership and the self-protection rule live in one place. The functions here
are pure: the caller supplies records it has just fetched from the store.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import uuid

from app.error_handlers import ForbiddenError, CannotModifySelfError


class UserTier(str, Enum):
    """Privilege tiers, totally ordered: user < admin < super_admin."""
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def at_least(self, other: "UserTier") -> bool:
        return self.rank >= other.rank

    def promoted(self) -> Optional["UserTier"]:
        """Next tier up, or None at the top."""
        index = _TIER_ORDER.index(self)
        return _TIER_ORDER[index + 1] if index + 1 < len(_TIER_ORDER) else None

    def demoted(self) -> Optional["UserTier"]:
        """Next tier down, or None at the bottom."""
        index = _TIER_ORDER.index(self)
        return _TIER_ORDER[index - 1] if index > 0 else None


_TIER_ORDER = (UserTier.USER, UserTier.ADMIN, UserTier.SUPER_ADMIN)
_TIER_RANK = {tier: rank for rank, tier in enumerate(_TIER_ORDER)}

ADMIN_TIERS = (UserTier.ADMIN, UserTier.SUPER_ADMIN)


class Action(str, Enum):
    """Actions gated by the authorization model."""
    CREATE_PRODUCT = "create_product"
    EDIT_PRODUCT = "edit_product"
    DELETE_PRODUCT = "delete_product"
    MANAGE_CATEGORY = "manage_category"
    MANAGE_USER = "manage_user"
    MANAGE_ADMIN = "manage_admin"
    VIEW_PRIVATE = "view_private"


# Actions on accounts, subject to the self-protection rule
ACCOUNT_ACTIONS = frozenset({Action.MANAGE_USER, Action.MANAGE_ADMIN})

# Actions that an owner may always perform on their own record
OWNED_ACTIONS = frozenset({Action.EDIT_PRODUCT, Action.DELETE_PRODUCT, Action.VIEW_PRIVATE})


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller identity."""
    id: uuid.UUID
    tier: UserTier

    @classmethod
    def from_user(cls, user) -> "CallerContext":
        return cls(id=user.id, tier=UserTier(user.tier))


@dataclass(frozen=True)
class Target:
    """
    The record an action is aimed at.

    record_id: identifier of the affected record (accounts: the account id)
    owner_id: owning user of the record (products, private data)
    tier: tier of the affected account, when known
    """
    record_id: Optional[uuid.UUID] = None
    owner_id: Optional[uuid.UUID] = None
    tier: Optional[UserTier] = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    self_modification: bool = False

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def required_tier(action: Action, target: Target) -> UserTier:
    """Minimum tier for ``action`` when the caller does not own the target."""
    if action == Action.CREATE_PRODUCT:
        return UserTier.USER
    if action == Action.MANAGE_ADMIN:
        return UserTier.SUPER_ADMIN
    if action == Action.MANAGE_USER:
        if target.tier is not None and target.tier.at_least(UserTier.ADMIN):
            return UserTier.SUPER_ADMIN
        return UserTier.ADMIN
    # category moderation and acting on someone else's records
    return UserTier.ADMIN


def evaluate(context: CallerContext, action: Action, target: Optional[Target] = None) -> Decision:
    """Decide whether ``context`` may perform ``action`` on ``target``."""
    target = target or Target()

    if action in ACCOUNT_ACTIONS and target.record_id is not None and target.record_id == context.id:
        return Decision(
            allowed=False,
            reason="You cannot modify your own account through this path",
            self_modification=True
        )

    if action in OWNED_ACTIONS and target.owner_id is not None and target.owner_id == context.id:
        return ALLOW

    needed = required_tier(action, target)
    if context.tier.at_least(needed):
        return ALLOW

    if action == Action.MANAGE_ADMIN or needed == UserTier.SUPER_ADMIN:
        reason = "Only a super admin can manage admin accounts"
    elif action in OWNED_ACTIONS:
        reason = "You can only modify your own records"
    else:
        reason = "You do not have permission to perform this action"
    return Decision(allowed=False, reason=reason)


def authorize(context: CallerContext, action: Action, target: Optional[Target] = None) -> None:
    """
    Raise unless ``context`` may perform ``action`` on ``target``.

    Raises:
        CannotModifySelfError: account action aimed at the caller's own id
        ForbiddenError: insufficient tier and not the owner
    """
    decision = evaluate(context, action, target)
    if decision.allowed:
        return
    if decision.self_modification:
        raise CannotModifySelfError(decision.reason)
    raise ForbiddenError(decision.reason)
