"""
Result type shared by the login flow steps.

Each step returns an AuthResult instead of raising, so the HTTP layer is the
single place that turns a failure code into a status code.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class AuthError(StrEnum):
    """Failure codes of the login flow, as exposed on the wire."""

    INVALID_QUERY = "invalid_query"
    MISSING_COOKIE = "missing_cookie"
    BAD_COOKIE = "bad_cookie"
    STATE_MISMATCH = "state_mismatch"
    OAUTH_EXCHANGE_FAILED = "oauth_exchange_failed"
    MISSING_CLAIMS = "missing_claims"
    INVALID_CLAIMS = "invalid_claims"
    EMAIL_UNVERIFIED = "email_unverified"


@dataclass(frozen=True)
class AuthResult(Generic[T]):
    """Either ok with data, or not ok with an AuthError."""

    ok: bool
    data: T | None = None
    error: AuthError | None = None

    @classmethod
    def success(cls, data: T) -> "AuthResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: AuthError) -> "AuthResult[T]":
        return cls(ok=False, error=error)
