"""
User model and related schemas.

This module contains:
- User database model (table=True), one row per email address
- UserPublic, UserResponse: Output schemas
- UserSettingsPublic, UserSettingsResponse: Output schemas for /settings
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

from vetdesk.models.base import utc_now

if TYPE_CHECKING:
    from vetdesk.models.session import UserSession


class UserBase(SQLModel):
    """Shared properties for User."""
    email: str = Field(unique=True, index=True, max_length=255)
    name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=2048)


class User(UserBase, table=True):
    """
    User database model.

    Attributes:
        email: Natural key, unique per user
        google_id: Identity provider subject, unique when present
        phone: Contact phone managed through /settings, unique when present
        last_login_at: Refreshed on every successful login
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    google_id: str | None = Field(default=None, unique=True, max_length=255)
    phone: str | None = Field(default=None, unique=True, max_length=32)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )
    last_login_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
    )

    # Relationships
    sessions: list["UserSession"] = Relationship(
        back_populates="user",
        cascade_delete=True,
    )


class UserPublic(UserBase):
    """Properties to return via API."""
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None


class UserResponse(SQLModel):
    """Response for GET /me."""
    user: UserPublic


class UserSettingsPublic(SQLModel):
    """User fields editable through /settings."""
    id: uuid.UUID
    email: str
    name: str | None = None
    avatar_url: str | None = None
    phone: str | None = None


class UserSettingsResponse(SQLModel):
    """Response for GET/PUT /settings."""
    user: UserSettingsPublic
