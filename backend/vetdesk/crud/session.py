"""
CRUD operations for UserSession model.

Handles creation, lookup with rolling refresh and lazy expiry, deletion,
and cleanup of server-side login sessions.
"""

import logging
import secrets
from datetime import datetime

from sqlmodel import Session, select

from vetdesk.models import SESSION_TTL, User, UserSession, as_utc, utc_now

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """
    Generate a cryptographically secure session id.

    Returns:
        URL-safe random string with sufficient entropy
    """
    return secrets.token_urlsafe(32)


def create_user_session(
    *,
    session: Session,
    user: User,
    now: datetime | None = None,
) -> UserSession:
    """
    Create a session for a user.

    Args:
        session: Database session
        user: The authenticated user
        now: Creation time (defaults to the current UTC time)

    Returns:
        Created UserSession with its user loaded
    """
    now = now or utc_now()
    user_session = UserSession(
        id=generate_session_id(),
        user_id=user.id,
        created_at=now,
        last_accessed_at=now,
        expires_at=now + SESSION_TTL,
    )
    session.add(user_session)
    session.commit()
    session.refresh(user_session)
    return user_session


def get_user_session(
    *,
    session: Session,
    session_id: str | None,
    now: datetime | None = None,
) -> UserSession | None:
    """
    Look up a valid session and refresh its last access time.

    Expired sessions are deleted on the read that finds them. Sessions whose
    user no longer exists are treated as invalid.

    Args:
        session: Database session
        session_id: Session id from the session cookie
        now: Lookup time (defaults to the current UTC time)

    Returns:
        UserSession with its user loaded, or None if absent, dangling or expired
    """
    if not session_id:
        return None

    user_session = session.get(UserSession, session_id)
    if user_session is None:
        return None

    if user_session.user is None:
        logger.warning("Session %s references a missing user", session_id[:8])
        return None

    now = now or utc_now()
    if user_session.is_expired(now):
        session.delete(user_session)
        session.commit()
        return None

    # Rolling refresh; expires_at is left unchanged
    if as_utc(user_session.last_accessed_at) < as_utc(now):
        user_session.last_accessed_at = now
        session.add(user_session)
        session.commit()
        session.refresh(user_session)

    return user_session


def delete_user_session(*, session: Session, session_id: str | None) -> None:
    """
    Delete a session by id.

    Missing ids and unknown sessions are a no-op.

    Args:
        session: Database session
        session_id: Session id from the session cookie
    """
    if not session_id:
        return

    user_session = session.get(UserSession, session_id)
    if user_session is None:
        return

    session.delete(user_session)
    session.commit()


def cleanup_expired_sessions(*, session: Session, now: datetime | None = None) -> int:
    """
    Remove all expired sessions from the database.

    Call this periodically so sessions that are never read again do not
    accumulate.

    Args:
        session: Database session
        now: Reference time (defaults to the current UTC time)

    Returns:
        Number of expired sessions removed
    """
    now = now or utc_now()

    statement = select(UserSession).where(UserSession.expires_at <= now)
    expired_sessions = session.exec(statement).all()

    count = len(expired_sessions)
    for user_session in expired_sessions:
        session.delete(user_session)

    if count > 0:
        session.commit()

    return count
