"""
Google sign-in flow.

The flow has two phases with no server-side state in between other than
the transient OIDC cookie:

1. start_google_auth: generate state/nonce, build the provider URL and the
   cookie value. No network or storage access.
2. finish_google_auth: validate the callback, exchange the code, validate
   the claims and upsert the user. The first failing step decides the
   result and no later step runs.

Creating the session and setting cookies is left to the caller.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlmodel import Session

from vetdesk.crud.user import upsert_user_by_email
from vetdesk.models import User, utc_now
from vetdesk.services.auth_result import AuthResult
from vetdesk.services.auth_validation import validate_callback_query, validate_claims
from vetdesk.services.oidc_client import (
    OIDCProviderConfig,
    build_authorization_url,
    build_callback_verification_url,
    exchange_authorization_code,
    generate_state_nonce,
)
from vetdesk.services.oidc_cookie import (
    OIDC_COOKIE_NAME,
    OIDC_COOKIE_OPTIONS,
    TransientAuthState,
    parse_oidc_cookie,
    serialize_oidc_cookie,
    verify_state_match,
)

logger = logging.getLogger(__name__)


@dataclass
class CookieSpec:
    """A cookie for the caller to set on the response."""

    name: str
    value: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthStart:
    cookie: CookieSpec
    redirect_url: str


@dataclass
class AuthDependencies:
    """Collaborators used by finish_google_auth."""

    config: OIDCProviderConfig
    session: Session
    redirect_uri: str
    now: Callable[[], datetime] = utc_now


@dataclass
class AuthSuccess:
    user: User
    app_origin: str


def start_google_auth(
    config: OIDCProviderConfig,
    *,
    redirect_uri: str,
    app_origin: str,
) -> AuthStart:
    """
    Begin a login attempt.

    Args:
        config: Discovered provider config
        redirect_uri: Callback URL registered with the provider
        app_origin: Web app origin to return to after login

    Returns:
        AuthStart with the transient cookie and the provider redirect URL
    """
    state, nonce = generate_state_nonce()
    redirect_url = build_authorization_url(
        config, state=state, nonce=nonce, redirect_uri=redirect_uri
    )

    cookie = CookieSpec(
        name=OIDC_COOKIE_NAME,
        value=serialize_oidc_cookie(
            TransientAuthState(state=state, nonce=nonce, app_origin=app_origin)
        ),
        options=dict(OIDC_COOKIE_OPTIONS),
    )
    return AuthStart(cookie=cookie, redirect_url=redirect_url)


async def finish_google_auth(
    deps: AuthDependencies,
    *,
    request_url: str,
    query: Any,
    raw_cookie: str | None,
) -> AuthResult[AuthSuccess]:
    """
    Complete a login attempt from the provider callback.

    Args:
        deps: Provider config, database session, redirect URI and clock
        request_url: Full URL of the callback request
        query: Callback query parameters
        raw_cookie: Value of the transient OIDC cookie, if any

    Returns:
        AuthResult with the upserted user and the app origin to return to
    """
    query_result = validate_callback_query(query)
    if not query_result.ok:
        return AuthResult.failure(query_result.error)
    callback = query_result.data

    cookie_result = parse_oidc_cookie(raw_cookie)
    if not cookie_result.ok:
        return AuthResult.failure(cookie_result.error)
    cookie = cookie_result.data

    match = verify_state_match(cookie.state, callback.state)
    if not match.ok:
        return AuthResult.failure(match.error)

    verification_url = build_callback_verification_url(deps.redirect_uri, request_url)
    exchanged = await exchange_authorization_code(
        deps.config,
        verification_url,
        expected_state=callback.state,
        expected_nonce=cookie.nonce,
        redirect_uri=deps.redirect_uri,
    )
    if not exchanged.ok:
        return AuthResult.failure(exchanged.error)

    claims_result = validate_claims(exchanged.data.claims)
    if not claims_result.ok:
        return AuthResult.failure(claims_result.error)
    claims = claims_result.data

    user = upsert_user_by_email(
        session=deps.session,
        email=claims.email,
        google_id=claims.sub,
        name=claims.name,
        avatar_url=claims.picture,
        now=deps.now(),
    )
    logger.info("User %s signed in with Google", user.id)

    return AuthResult.success(AuthSuccess(user=user, app_origin=cookie.app_origin))
