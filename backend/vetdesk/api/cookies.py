"""
Session cookie constants and helpers for setting/clearing auth cookies.
"""

from fastapi import Response

from vetdesk.models import SESSION_TTL
from vetdesk.services.oidc_cookie import OIDC_COOKIE_NAME

SESSION_COOKIE_NAME = "session"

# Keyword arguments for Response.set_cookie
SESSION_COOKIE_OPTIONS = {
    "httponly": True,
    "secure": True,
    "samesite": "lax",
    "path": "/",
    "max_age": int(SESSION_TTL.total_seconds()),
}


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(SESSION_COOKIE_NAME, session_id, **SESSION_COOKIE_OPTIONS)


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        SESSION_COOKIE_NAME, path="/", secure=True, httponly=True, samesite="lax"
    )


def clear_oidc_cookie(response: Response) -> None:
    response.delete_cookie(
        OIDC_COOKIE_NAME, path="/", secure=True, httponly=True, samesite="lax"
    )
