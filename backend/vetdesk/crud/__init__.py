"""
CRUD operations module.
"""

from vetdesk.crud.user import (
    DuplicatePhoneError,
    get_user_by_email,
    get_user_by_id,
    update_user_settings,
    upsert_user_by_email,
)

from vetdesk.crud.session import (
    cleanup_expired_sessions,
    create_user_session,
    delete_user_session,
    generate_session_id,
    get_user_session,
)

__all__ = [
    # User
    "DuplicatePhoneError",
    "get_user_by_email",
    "get_user_by_id",
    "update_user_settings",
    "upsert_user_by_email",
    # Session
    "cleanup_expired_sessions",
    "create_user_session",
    "delete_user_session",
    "generate_session_id",
    "get_user_session",
]
