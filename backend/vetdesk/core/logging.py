"""
Logging setup and per-request log context.

Log records carry the current request id (and the authenticated user id once
known) through a context variable, so any module logger can be used
without passing request objects around.
"""

import logging
import sys
from contextvars import ContextVar

_request_id: ContextVar[str] = ContextVar("request_id", default="-")
_user_id: ContextVar[str] = ContextVar("user_id", default="-")

LOG_FORMAT = (
    "%(asctime)s %(levelname)s [%(name)s] "
    "[request_id=%(request_id)s user_id=%(user_id)s] %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Attach request_id and user_id from the log context to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        record.user_id = _user_id.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; existing handlers installed by a previous
    call are replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_vetdesk", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())
    handler._vetdesk = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(level)


def bind_request_id(request_id: str) -> None:
    _request_id.set(request_id)
    _user_id.set("-")


def bind_user_id(user_id: str) -> None:
    _user_id.set(user_id)


def get_request_id() -> str:
    return _request_id.get()
