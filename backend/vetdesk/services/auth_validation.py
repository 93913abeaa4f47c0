"""
Validation of the OAuth callback query and the identity token claims.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vetdesk.services.auth_result import AuthError, AuthResult


class CallbackQuery(BaseModel):
    """Query parameters the provider sends to the callback."""

    model_config = ConfigDict(strict=True)

    code: str = Field(min_length=1)
    state: str = Field(min_length=1)


class Claims(BaseModel):
    """Identity claims required to sign a user in."""

    model_config = ConfigDict(strict=True)

    sub: str = Field(min_length=1)
    email: str
    email_verified: bool | None = None
    name: str | None = None
    picture: str | None = None

    @field_validator("email")
    @classmethod
    def email_must_be_address(cls, v: str) -> str:
        # The address is the user's natural key, so it is checked but never rewritten
        if "<" in v or ">" in v:
            raise ValueError("email must be a bare address")
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("picture")
    @classmethod
    def picture_must_be_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        parts = urlsplit(v)
        if not parts.scheme or not parts.netloc:
            raise ValueError("picture must be an absolute URL")
        return v


def validate_callback_query(query: Any) -> AuthResult[CallbackQuery]:
    """Both code and state must be present, non-empty strings."""
    if not isinstance(query, Mapping):
        return AuthResult.failure(AuthError.INVALID_QUERY)
    try:
        return AuthResult.success(CallbackQuery.model_validate(dict(query)))
    except ValidationError:
        return AuthResult.failure(AuthError.INVALID_QUERY)


def validate_claims(raw: Any) -> AuthResult[Claims]:
    """
    Validate identity claims from the ID token.

    Returns:
        MISSING_CLAIMS if there are no claims, INVALID_CLAIMS if they do not
        have the expected shape, EMAIL_UNVERIFIED if email_verified is
        explicitly false, else the validated claims.
    """
    if not raw:
        return AuthResult.failure(AuthError.MISSING_CLAIMS)
    try:
        claims = Claims.model_validate(raw)
    except ValidationError:
        return AuthResult.failure(AuthError.INVALID_CLAIMS)

    # Absent is accepted; only an explicit false is rejected
    if claims.email_verified is False:
        return AuthResult.failure(AuthError.EMAIL_UNVERIFIED)
    return AuthResult.success(claims)
