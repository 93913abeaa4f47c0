"""
CRUD operations for User model.
"""

import uuid
from datetime import datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from vetdesk.core.errors import UserNotFoundError
from vetdesk.models import User, utc_now

# Keyed by the backends Database.open() accepts
_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class DuplicatePhoneError(Exception):
    """Raised when a phone number already belongs to another user."""


def get_user_by_email(*, session: Session, email: str) -> User | None:
    """
    Get a user by email.

    Args:
        session: Database session
        email: Email to search for

    Returns:
        User if found, None otherwise
    """
    statement = select(User).where(User.email == email)
    return session.exec(statement).first()


def get_user_by_id(*, session: Session, user_id: uuid.UUID) -> User | None:
    return session.get(User, user_id)


def upsert_user_by_email(
    *,
    session: Session,
    email: str,
    google_id: str,
    name: str | None,
    avatar_url: str | None,
    now: datetime,
) -> User:
    """
    Insert a user, or update the existing user with the same email.

    Uses the database's native INSERT ... ON CONFLICT (email) DO UPDATE, so
    concurrent logins for the same email never create a second row; the last
    writer wins. On conflict only google_id, avatar_url, updated_at and
    last_login_at are overwritten; name is only set on insert.

    Args:
        session: Database session
        email: User's email (natural key)
        google_id: Identity provider subject
        name: Display name from the provider
        avatar_url: Picture URL from the provider
        now: Timestamp for updated_at/last_login_at

    Returns:
        The resulting User row

    Raises:
        UserNotFoundError: If the write reports no resulting row
    """
    insert = _DIALECT_INSERTS[session.get_bind().dialect.name]

    statement = (
        insert(User)
        .values(
            id=uuid.uuid4(),
            email=email,
            google_id=google_id,
            name=name,
            avatar_url=avatar_url,
            created_at=now,
            updated_at=now,
            last_login_at=now,
        )
        .on_conflict_do_update(
            index_elements=["email"],
            set_={
                "google_id": google_id,
                "avatar_url": avatar_url,
                "updated_at": now,
                "last_login_at": now,
            },
        )
        .returning(User.id)
    )

    user_id = session.connection().execute(statement).scalar_one_or_none()
    session.commit()

    if user_id is None:
        raise UserNotFoundError()

    user = session.get(User, user_id, populate_existing=True)
    if user is None:
        raise UserNotFoundError()
    return user


def update_user_settings(
    *,
    session: Session,
    user: User,
    name: str | None,
    phone: str,
) -> User:
    """
    Update the user-editable profile fields.

    Args:
        session: Database session
        user: User object to update
        name: New display name (None clears it)
        phone: New phone number, already normalized

    Returns:
        Updated User object

    Raises:
        DuplicatePhoneError: If another user already has this phone
    """
    user.name = name
    user.phone = phone
    user.updated_at = utc_now()
    session.add(user)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise DuplicatePhoneError(phone) from e
    session.refresh(user)
    return user
