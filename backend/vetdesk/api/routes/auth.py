"""
Authentication API routes.

Provides endpoints for:
- Starting Google sign-in
- Handling the Google callback and creating a session
- Logging out
"""

import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from vetdesk.api.cookies import (
    SESSION_COOKIE_NAME,
    clear_oidc_cookie,
    clear_session_cookie,
    set_session_cookie,
)
from vetdesk.api.deps import OIDCConfigDep, SessionDep
from vetdesk.core.config import settings
from vetdesk.core.errors import AppError, bad_request, error_response
from vetdesk.core.origin import resolve_app_origin
from vetdesk.crud.session import create_user_session, delete_user_session
from vetdesk.services import (
    AuthDependencies,
    AuthError,
    finish_google_auth,
    start_google_auth,
)
from vetdesk.services.oidc_cookie import OIDC_COOKIE_NAME

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Any login error not listed here is a client error (400)
_STATUS_BY_ERROR = {
    AuthError.OAUTH_EXCHANGE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    AuthError.EMAIL_UNVERIFIED: status.HTTP_403_FORBIDDEN,
}


class LogoutResponse(BaseModel):
    """Response for logout."""

    ok: bool


@router.get("/google")
async def google_login(request: Request, config: OIDCConfigDep) -> RedirectResponse:
    """
    Start Google sign-in.

    The web app origin is taken from the Origin header (or Referer) and must
    be allow-listed. Sets the transient OIDC cookie and redirects to Google.
    """
    app_origin = resolve_app_origin(
        request.headers.get("origin"),
        request.headers.get("referer"),
        settings.all_allowed_app_origins,
    )
    if app_origin is None:
        raise bad_request("invalid_origin", "Origin is missing or not allowed")

    start = start_google_auth(
        config,
        redirect_uri=settings.OAUTH_REDIRECT_URI,
        app_origin=app_origin,
    )

    response = RedirectResponse(url=start.redirect_url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(start.cookie.name, start.cookie.value, **start.cookie.options)
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    session: SessionDep,
    config: OIDCConfigDep,
) -> Response:
    """
    Handle the Google callback.

    On success creates a session, sets the session cookie and redirects to
    the web app. The transient OIDC cookie is cleared on every outcome.
    """
    deps = AuthDependencies(
        config=config,
        session=session,
        redirect_uri=settings.OAUTH_REDIRECT_URI,
    )

    try:
        result = await finish_google_auth(
            deps,
            request_url=str(request.url),
            query=request.query_params,
            raw_cookie=request.cookies.get(OIDC_COOKIE_NAME),
        )
        user_session = (
            create_user_session(session=session, user=result.data.user) if result.ok else None
        )
    except AppError as e:
        logger.error("google_callback_failed: %s", e.code)
        response = error_response(request, e.status_code, e.code)
        clear_oidc_cookie(response)
        return response
    except Exception:
        logger.exception("google_callback_failed: unexpected error")
        session.rollback()
        response = error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_server_error"
        )
        clear_oidc_cookie(response)
        return response

    if not result.ok:
        status_code = _STATUS_BY_ERROR.get(result.error, status.HTTP_400_BAD_REQUEST)
        if status_code >= 500:
            logger.error("google_callback_exchange_failed")
        else:
            logger.info("google_callback_rejected: %s", result.error)
        response = error_response(request, status_code, result.error.value)
        clear_oidc_cookie(response)
        return response

    response = RedirectResponse(
        url=f"{result.data.app_origin.rstrip('/')}/",
        status_code=status.HTTP_302_FOUND,
    )
    set_session_cookie(response, user_session.id)
    clear_oidc_cookie(response)
    return response


@router.post("/logout", response_model=LogoutResponse)
async def logout(request: Request, response: Response, session: SessionDep) -> LogoutResponse:
    """
    Log out.

    Deletes the session (if any) and clears the session cookie. Always succeeds.
    """
    delete_user_session(
        session=session,
        session_id=request.cookies.get(SESSION_COOKIE_NAME),
    )
    clear_session_cookie(response)
    return LogoutResponse(ok=True)
