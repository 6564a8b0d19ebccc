"""Core application modules."""
from app.core.config import settings, get_settings
from app.core.database import Base, get_db, get_db_context, init_db, close_db
from app.core.authorization import (
    UserTier,
    Action,
    CallerContext,
    Target,
    authorize,
    evaluate
)
from app.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    get_current_user,
    get_current_user_id,
    get_caller
)

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    "UserTier",
    "Action",
    "CallerContext",
    "Target",
    "authorize",
    "evaluate",
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "get_current_user",
    "get_current_user_id",
    "get_caller",
]
