"""
Models package for database models and schemas.

This package contains SQLModel database models and Pydantic schemas:
- User models and schemas
- UserSession model
- Shared time helpers

Import from this module for convenience:

    from vetdesk.models import User, UserSession, UserPublic

Or import from specific modules for clarity:

    from vetdesk.models.user import User, UserPublic
    from vetdesk.models.session import UserSession, SESSION_TTL
"""

# Re-export SQLModel for table creation
from sqlmodel import SQLModel

# Base models
from vetdesk.models.base import as_utc, utc_now

# User models
from vetdesk.models.user import (
    User,
    UserBase,
    UserPublic,
    UserResponse,
    UserSettingsPublic,
    UserSettingsResponse,
)

# Session model
from vetdesk.models.session import (
    SESSION_TTL,
    UserSession,
)

__all__ = [
    # SQLModel for table creation
    "SQLModel",
    # Base
    "as_utc",
    "utc_now",
    # User
    "User",
    "UserBase",
    "UserPublic",
    "UserResponse",
    "UserSettingsPublic",
    "UserSettingsResponse",
    # Session
    "SESSION_TTL",
    "UserSession",
]
