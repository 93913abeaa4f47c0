"""
Services package for the sign-in flow.

Usage:
    from vetdesk.services import start_google_auth, finish_google_auth
    from vetdesk.services.oidc_client import discover

Available services:
    - auth_flow: two-phase Google sign-in
    - oidc_client: identity provider discovery and code exchange
    - oidc_cookie: transient OIDC cookie codec
    - auth_validation: callback query and claims validation
    - session_cleanup: periodic purge of expired sessions
"""

from .auth_result import AuthError, AuthResult
from .auth_flow import (
    AuthDependencies,
    AuthStart,
    AuthSuccess,
    CookieSpec,
    finish_google_auth,
    start_google_auth,
)

__all__ = [
    # Results
    "AuthError",
    "AuthResult",
    # Flow
    "AuthDependencies",
    "AuthStart",
    "AuthSuccess",
    "CookieSpec",
    "finish_google_auth",
    "start_google_auth",
]
