"""
UserSession model for server-side login sessions.

The session id doubles as the bearer token stored in the session cookie.
"""

import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

from vetdesk.models.base import as_utc, utc_now

if TYPE_CHECKING:
    from vetdesk.models.user import User


# Absolute session lifetime (7 days); not extended by rolling refresh
SESSION_TTL = timedelta(days=7)


class UserSession(SQLModel, table=True):
    """
    Stores an authenticated session.

    Attributes:
        id: Cryptographically secure random string (primary key)
        user_id: ID of the user who owns the session
        created_at: When the session was created
        last_accessed_at: Updated on every successful read (rolling refresh)
        expires_at: Absolute expiry, created_at + SESSION_TTL
    """

    __tablename__ = "sessions"

    id: str = Field(primary_key=True, max_length=64)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )
    last_accessed_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))

    # Relationship to user
    user: Optional["User"] = Relationship(back_populates="sessions")

    def is_expired(self, now: datetime | None = None) -> bool:
        """
        Check if this session has reached its absolute expiry.

        Returns:
            True if expires_at <= now.
        """
        now = as_utc(now or utc_now())
        return as_utc(self.expires_at) <= now
