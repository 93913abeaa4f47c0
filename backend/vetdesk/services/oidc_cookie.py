"""
Transient OIDC cookie: constants and codec.

The cookie bridges the redirect to the identity provider and the callback.
It carries the state, the nonce and the web app origin to return to, and
lives for five minutes at most.
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vetdesk.services.auth_result import AuthError, AuthResult

OIDC_COOKIE_NAME = "oidc"
OIDC_COOKIE_MAX_AGE_SECONDS = 300

# Keyword arguments for Response.set_cookie
OIDC_COOKIE_OPTIONS = {
    "httponly": True,
    "secure": True,
    "samesite": "lax",
    "path": "/",
    "max_age": OIDC_COOKIE_MAX_AGE_SECONDS,
}


class TransientAuthState(BaseModel):
    """Payload of the transient OIDC cookie."""

    model_config = ConfigDict(strict=True, frozen=True)

    state: str = Field(min_length=1)
    nonce: str = Field(min_length=1)
    app_origin: str


def serialize_oidc_cookie(value: TransientAuthState) -> str:
    """Encode the cookie payload as compact JSON."""
    return value.model_dump_json()


def parse_oidc_cookie(raw: str | None) -> AuthResult[TransientAuthState]:
    """
    Decode the cookie payload.

    Returns:
        MISSING_COOKIE if the cookie is absent or empty, BAD_COOKIE if it is
        not valid JSON of the expected shape, else the decoded payload.
    """
    if not raw:
        return AuthResult.failure(AuthError.MISSING_COOKIE)
    try:
        return AuthResult.success(TransientAuthState.model_validate_json(raw))
    except ValidationError:
        return AuthResult.failure(AuthError.BAD_COOKIE)


def verify_state_match(cookie_state: str, query_state: str) -> AuthResult[bool]:
    # Exact comparison, no normalization
    if cookie_state != query_state:
        return AuthResult.failure(AuthError.STATE_MISMATCH)
    return AuthResult.success(True)
