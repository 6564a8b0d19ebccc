"""Tests for the tier/ownership authorization model."""
import uuid

import pytest

from app.core.authorization import (
    Action,
    CallerContext,
    Target,
    UserTier,
    authorize,
    evaluate,
    required_tier,
)
from app.error_handlers import CannotModifySelfError, ForbiddenError


def make_caller(tier: UserTier) -> CallerContext:
    return CallerContext(id=uuid.uuid4(), tier=tier)


class TestUserTier:
    """Tests for tier ordering and stepping."""

    def test_total_order(self):
        assert UserTier.USER.rank < UserTier.ADMIN.rank < UserTier.SUPER_ADMIN.rank
        assert UserTier.SUPER_ADMIN.at_least(UserTier.ADMIN)
        assert UserTier.ADMIN.at_least(UserTier.ADMIN)
        assert not UserTier.USER.at_least(UserTier.ADMIN)

    def test_promote_and_demote_steps(self):
        assert UserTier.USER.promoted() == UserTier.ADMIN
        assert UserTier.ADMIN.promoted() == UserTier.SUPER_ADMIN
        assert UserTier.SUPER_ADMIN.promoted() is None
        assert UserTier.SUPER_ADMIN.demoted() == UserTier.ADMIN
        assert UserTier.USER.demoted() is None

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError):
            UserTier("owner")


class TestProductPermissions:
    """Create/edit/delete rules for products."""

    @pytest.mark.parametrize("tier", list(UserTier))
    def test_every_tier_can_create(self, tier):
        assert evaluate(make_caller(tier), Action.CREATE_PRODUCT).allowed

    def test_user_edits_own_product(self):
        caller = make_caller(UserTier.USER)
        target = Target(record_id=uuid.uuid4(), owner_id=caller.id)
        assert evaluate(caller, Action.EDIT_PRODUCT, target).allowed

    def test_user_cannot_edit_other_users_product(self):
        caller = make_caller(UserTier.USER)
        target = Target(record_id=uuid.uuid4(), owner_id=uuid.uuid4())
        decision = evaluate(caller, Action.EDIT_PRODUCT, target)
        assert not decision.allowed
        assert not decision.self_modification

    @pytest.mark.parametrize("tier", [UserTier.ADMIN, UserTier.SUPER_ADMIN])
    @pytest.mark.parametrize("action", [Action.EDIT_PRODUCT, Action.DELETE_PRODUCT])
    def test_admin_tiers_moderate_any_product(self, tier, action):
        target = Target(record_id=uuid.uuid4(), owner_id=uuid.uuid4())
        assert evaluate(make_caller(tier), action, target).allowed

    def test_authorize_raises_forbidden(self):
        caller = make_caller(UserTier.USER)
        with pytest.raises(ForbiddenError):
            authorize(caller, Action.DELETE_PRODUCT, Target(owner_id=uuid.uuid4()))


class TestCategoryPermissions:

    def test_user_cannot_manage_categories(self):
        assert not evaluate(make_caller(UserTier.USER), Action.MANAGE_CATEGORY).allowed

    @pytest.mark.parametrize("tier", [UserTier.ADMIN, UserTier.SUPER_ADMIN])
    def test_admin_tiers_manage_categories(self, tier):
        assert evaluate(make_caller(tier), Action.MANAGE_CATEGORY).allowed


class TestAccountPermissions:
    """Account management, including the self-protection rule."""

    def test_admin_manages_regular_users(self):
        target = Target(record_id=uuid.uuid4(), tier=UserTier.USER)
        assert evaluate(make_caller(UserTier.ADMIN), Action.MANAGE_USER, target).allowed

    def test_user_cannot_manage_users(self):
        target = Target(record_id=uuid.uuid4(), tier=UserTier.USER)
        assert not evaluate(make_caller(UserTier.USER), Action.MANAGE_USER, target).allowed

    def test_admin_cannot_delete_another_admin(self):
        caller = make_caller(UserTier.ADMIN)
        target = Target(record_id=uuid.uuid4(), tier=UserTier.ADMIN)
        assert not evaluate(caller, Action.MANAGE_ADMIN, target).allowed
        # Reaching an admin through the user-management path escalates too
        assert not evaluate(caller, Action.MANAGE_USER, target).allowed
        assert required_tier(Action.MANAGE_USER, target) == UserTier.SUPER_ADMIN

    def test_super_admin_manages_other_admins(self):
        target = Target(record_id=uuid.uuid4(), tier=UserTier.ADMIN)
        assert evaluate(make_caller(UserTier.SUPER_ADMIN), Action.MANAGE_ADMIN, target).allowed

    def test_super_admin_cannot_target_self(self):
        caller = make_caller(UserTier.SUPER_ADMIN)
        decision = evaluate(caller, Action.MANAGE_ADMIN, Target(record_id=caller.id))
        assert not decision.allowed
        assert decision.self_modification

        with pytest.raises(CannotModifySelfError):
            authorize(caller, Action.MANAGE_ADMIN, Target(record_id=caller.id))

    def test_admin_targeting_self_reports_self_modification(self):
        caller = make_caller(UserTier.ADMIN)
        with pytest.raises(CannotModifySelfError):
            authorize(caller, Action.MANAGE_USER, Target(record_id=caller.id, tier=UserTier.ADMIN))

    def test_cannot_modify_self_is_a_forbidden_error(self):
        caller = make_caller(UserTier.SUPER_ADMIN)
        with pytest.raises(ForbiddenError) as exc_info:
            authorize(caller, Action.MANAGE_ADMIN, Target(record_id=caller.id))
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "cannot_modify_self"


class TestPrivateData:

    def test_owner_reads_own_private_data(self):
        caller = make_caller(UserTier.USER)
        assert evaluate(caller, Action.VIEW_PRIVATE, Target(owner_id=caller.id)).allowed

    def test_user_cannot_read_other_private_data(self):
        caller = make_caller(UserTier.USER)
        assert not evaluate(caller, Action.VIEW_PRIVATE, Target(owner_id=uuid.uuid4())).allowed

    def test_admin_reads_private_data(self):
        caller = make_caller(UserTier.ADMIN)
        assert evaluate(caller, Action.VIEW_PRIVATE, Target(owner_id=uuid.uuid4())).allowed
