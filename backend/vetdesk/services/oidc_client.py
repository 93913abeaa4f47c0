"""
OpenID Connect client for the configured identity provider (Google).

Provides:
- Discovery of the provider endpoints
- State/nonce generation
- Authorization URL construction
- Authorization-code exchange with ID token verification
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

import httpx
import jwt
from jwt import PyJWKClient

from vetdesk.services.auth_result import AuthError, AuthResult

logger = logging.getLogger(__name__)

OIDC_SCOPE = "openid email profile"
DEFAULT_ISSUER = "https://accounts.google.com"

# Metadata fields the provider must advertise
_REQUIRED_METADATA = ("authorization_endpoint", "token_endpoint", "jwks_uri")


@dataclass
class OIDCProviderConfig:
    """Discovered provider endpoints plus the client credentials."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str
    client_id: str
    client_secret: str
    userinfo_endpoint: str | None = None


@dataclass
class TokenSet:
    """Result of a successful code exchange."""

    id_token: str
    claims: dict[str, Any] = field(default_factory=dict)


class OIDCDiscoveryError(Exception):
    """Provider metadata could not be fetched or is unusable."""


class OIDCExchangeError(Exception):
    """Error during the authorization-code exchange."""

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        super().__init__(f"{error}: {description}" if description else error)


async def discover(
    client_id: str,
    client_secret: str,
    issuer: str = DEFAULT_ISSUER,
) -> OIDCProviderConfig:
    """
    Resolve the provider's endpoints from its discovery document.

    Args:
        client_id: OAuth client id registered with the provider
        client_secret: OAuth client secret
        issuer: Provider issuer URL

    Returns:
        OIDCProviderConfig for the provider

    Raises:
        OIDCDiscoveryError: If the document cannot be fetched or is incomplete
    """
    issuer = issuer.rstrip("/")
    url = f"{issuer}/.well-known/openid-configuration"

    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.get(url, headers={"Accept": "application/json"})
        if response.status_code != 200:
            raise OIDCDiscoveryError(
                f"Discovery request to {url} returned {response.status_code}"
            )
        metadata = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise OIDCDiscoveryError(f"Discovery request to {url} failed: {e}") from e

    if not isinstance(metadata, dict):
        raise OIDCDiscoveryError("Discovery document is not a JSON object")

    if str(metadata.get("issuer") or "").rstrip("/") != issuer:
        raise OIDCDiscoveryError(
            f"Discovery issuer {metadata.get('issuer')!r} does not match {issuer!r}"
        )

    missing = [name for name in _REQUIRED_METADATA if not metadata.get(name)]
    if missing:
        raise OIDCDiscoveryError(f"Discovery document is missing: {', '.join(missing)}")

    logger.info("Discovered OIDC provider %s", issuer)

    return OIDCProviderConfig(
        issuer=metadata["issuer"],
        authorization_endpoint=metadata["authorization_endpoint"],
        token_endpoint=metadata["token_endpoint"],
        jwks_uri=metadata["jwks_uri"],
        userinfo_endpoint=metadata.get("userinfo_endpoint"),
        client_id=client_id,
        client_secret=client_secret,
    )


def generate_state_nonce() -> tuple[str, str]:
    """
    Generate independent state and nonce values for one login attempt.

    Returns:
        Tuple of (state, nonce), both URL-safe random strings
    """
    return secrets.token_urlsafe(32), secrets.token_urlsafe(32)


def build_authorization_url(
    config: OIDCProviderConfig,
    *,
    state: str,
    nonce: str,
    redirect_uri: str,
) -> str:
    """Build the provider URL the browser is redirected to."""
    params = {
        "client_id": config.client_id,
        "response_type": "code",
        "scope": OIDC_SCOPE,
        "redirect_uri": redirect_uri,
        "state": state,
        "nonce": nonce,
    }
    separator = "&" if "?" in config.authorization_endpoint else "?"
    return f"{config.authorization_endpoint}{separator}{urlencode(params)}"


def build_callback_verification_url(redirect_uri: str, request_url: str) -> str:
    """
    Rebuild the callback URL from the configured redirect URI.

    Only the query string of the incoming request is used; its scheme, host
    and path are ignored.
    """
    base = urlsplit(redirect_uri)
    _, separator, query = request_url.partition("?")
    query = query.split("#", 1)[0] if separator else ""
    return urlunsplit((base.scheme, base.netloc, base.path, query, ""))


async def _post_token_request(token_url: str, data: dict) -> dict:
    """
    Make a POST request to the provider's token endpoint.

    Raises:
        OIDCExchangeError: If the token request is rejected
    """
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            token_url,
            data=data,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
        )

    result = response.json()

    if response.status_code != 200:
        error = result.get("error", "unknown_error") if isinstance(result, dict) else "unknown_error"
        description = result.get("error_description") if isinstance(result, dict) else None
        raise OIDCExchangeError(error, description)

    if not isinstance(result, dict):
        raise OIDCExchangeError("invalid_token_response")

    return result


@lru_cache(maxsize=4)
def _get_jwk_client(jwks_uri: str) -> PyJWKClient:
    return PyJWKClient(jwks_uri)


def _decode_id_token(id_token: str, config: OIDCProviderConfig) -> dict[str, Any]:
    """Verify the ID token signature, audience, issuer and expiry."""
    signing_key = _get_jwk_client(config.jwks_uri).get_signing_key_from_jwt(id_token)
    return jwt.decode(
        id_token,
        signing_key.key,
        algorithms=["RS256"],
        audience=config.client_id,
        issuer=config.issuer,
        options={"require": ["exp", "iat", "iss", "aud", "sub"]},
    )


def _single_param(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None


async def _exchange(
    config: OIDCProviderConfig,
    verification_url: str,
    *,
    expected_state: str,
    expected_nonce: str,
    redirect_uri: str,
) -> TokenSet:
    params = parse_qs(urlsplit(verification_url).query)

    error = _single_param(params, "error")
    if error:
        raise OIDCExchangeError(error, _single_param(params, "error_description"))

    if _single_param(params, "state") != expected_state:
        raise OIDCExchangeError("state_mismatch")

    code = _single_param(params, "code")
    if not code:
        raise OIDCExchangeError("missing_code")

    result = await _post_token_request(
        config.token_endpoint,
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        },
    )

    id_token = result.get("id_token")
    if not id_token:
        raise OIDCExchangeError("missing_id_token")

    # PyJWKClient fetches keys synchronously
    claims = await asyncio.to_thread(_decode_id_token, id_token, config)

    if claims.get("nonce") != expected_nonce:
        raise OIDCExchangeError("nonce_mismatch")

    return TokenSet(id_token=id_token, claims=claims)


async def exchange_authorization_code(
    config: OIDCProviderConfig,
    verification_url: str,
    *,
    expected_state: str,
    expected_nonce: str,
    redirect_uri: str,
) -> AuthResult[TokenSet]:
    """
    Exchange the authorization code in the callback URL for tokens.

    Every failure (provider error in the callback, state mismatch, network
    error, rejected grant, missing or invalid ID token, nonce mismatch) is
    reported as OAUTH_EXCHANGE_FAILED; the reason is only logged.

    Args:
        config: Discovered provider config
        verification_url: Callback URL rebuilt by build_callback_verification_url
        expected_state: State from the callback query
        expected_nonce: Nonce from the transient cookie
        redirect_uri: Redirect URI used in the authorization request

    Returns:
        AuthResult with the TokenSet on success
    """
    try:
        tokens = await _exchange(
            config,
            verification_url,
            expected_state=expected_state,
            expected_nonce=expected_nonce,
            redirect_uri=redirect_uri,
        )
    except (OIDCExchangeError, httpx.HTTPError, jwt.PyJWTError, ValueError, KeyError) as e:
        logger.warning("OIDC code exchange failed: %s", e)
        return AuthResult.failure(AuthError.OAUTH_EXCHANGE_FAILED)

    return AuthResult.success(tokens)
