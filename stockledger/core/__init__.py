"""Core application modules."""
from stockledger.core.config import settings, get_settings
from stockledger.core.database import (
    Base,
    get_db,
    get_db_context,
    get_session_factory,
    init_db,
    close_db
)
from stockledger.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    get_current_user,
    get_current_user_id,
)

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "get_db_context",
    "get_session_factory",
    "init_db",
    "close_db",
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "get_current_user",
    "get_current_user_id",
]
