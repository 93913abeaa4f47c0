"""
Periodic purge of expired sessions.

Expired sessions are deleted lazily when read; this task removes the ones
that are never read again.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from vetdesk.core.db import Database
from vetdesk.crud.session import cleanup_expired_sessions
from vetdesk.models import utc_now

logger = logging.getLogger(__name__)


def purge_expired_sessions(database: Database, *, now: datetime) -> int:
    """
    Delete every session that expired at or before ``now``.

    A database error is logged and reported as zero removed sessions so the
    next run can try again.
    """
    try:
        with database.session() as session:
            count = cleanup_expired_sessions(session=session, now=now)
    except SQLAlchemyError:
        logger.exception("session_cleanup_failed")
        return 0

    if count:
        logger.info("session_cleanup_removed: %d", count)
    return count


async def run_cleanup_task(
    database: Database,
    *,
    interval_seconds: float,
    stop_event: asyncio.Event,
    now: Callable[[], datetime] = utc_now,
) -> None:
    """
    Purge expired sessions every ``interval_seconds`` until ``stop_event`` is set.

    The first purge runs one interval after start.
    """
    logger.info("session_cleanup_started: every %ss", interval_seconds)
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            purge_expired_sessions(database, now=now())
    logger.info("session_cleanup_stopped")
