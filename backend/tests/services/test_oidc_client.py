"""
Tests for the OpenID Connect client.

Provider HTTP calls are mocked with patch("httpx.AsyncClient"); ID tokens
are signed with a throwaway RSA key whose public half is served by a
mocked JWK client.
"""

import time
from dataclasses import asdict
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlsplit

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from vetdesk.services.auth_result import AuthError
from vetdesk.services.oidc_client import (
    OIDC_SCOPE,
    OIDCDiscoveryError,
    OIDCProviderConfig,
    build_authorization_url,
    build_callback_verification_url,
    discover,
    exchange_authorization_code,
    generate_state_nonce,
)

REDIRECT_URI = "https://api.example.com/auth/google/callback"

GOOGLE_METADATA = {
    "issuer": "https://accounts.google.com",
    "authorization_endpoint": "https://accounts.google.com/o/oauth2/v2/auth",
    "token_endpoint": "https://oauth2.googleapis.com/token",
    "jwks_uri": "https://www.googleapis.com/oauth2/v3/certs",
    "userinfo_endpoint": "https://openidconnect.googleapis.com/v1/userinfo",
}


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwk_client(signing_key):
    """Serve the test public key in place of Google's JWKS."""
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = MagicMock(key=signing_key.public_key())
    with patch("vetdesk.services.oidc_client._get_jwk_client", return_value=client):
        yield client


def make_id_token(signing_key, **overrides) -> str:
    now = int(time.time())
    payload = {
        "iss": "https://accounts.google.com",
        "aud": "test-google-client-id",
        "sub": "1",
        "email": "a@example.com",
        "email_verified": True,
        "name": "Ada",
        "nonce": "nonce-1",
        "iat": now - 10,
        "exp": now + 3600,
    }
    payload.update(overrides)
    return jwt.encode(payload, signing_key, algorithm="RS256", headers={"kid": "test-key"})


def mock_async_client(mock_client, response=None, side_effect=None, method="post"):
    mock_instance = AsyncMock()
    target = getattr(mock_instance, method)
    if side_effect is not None:
        target.side_effect = side_effect
    else:
        target.return_value = response
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = None
    mock_client.return_value = mock_instance
    return mock_instance


def json_response(status_code: int, body) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestDiscover:
    """Tests for provider discovery."""

    @pytest.mark.asyncio
    async def test_discovers_google_endpoints(self):
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_async_client(
                mock_client, json_response(200, GOOGLE_METADATA), method="get"
            )

            config = await discover("cid", "secret", "https://accounts.google.com")

            url = instance.get.call_args[0][0]
            assert url == "https://accounts.google.com/.well-known/openid-configuration"

        assert config.issuer == "https://accounts.google.com"
        assert config.token_endpoint == "https://oauth2.googleapis.com/token"
        assert config.jwks_uri == "https://www.googleapis.com/oauth2/v3/certs"
        assert config.client_id == "cid"
        assert config.client_secret == "secret"

    @pytest.mark.asyncio
    async def test_non_200_raises(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(503, {}), method="get")

            with pytest.raises(OIDCDiscoveryError):
                await discover("cid", "secret")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(
                mock_client, side_effect=httpx.ConnectError("unreachable"), method="get"
            )

            with pytest.raises(OIDCDiscoveryError):
                await discover("cid", "secret")

    @pytest.mark.asyncio
    async def test_issuer_mismatch_raises(self):
        metadata = {**GOOGLE_METADATA, "issuer": "https://evil.example.com"}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, metadata), method="get")

            with pytest.raises(OIDCDiscoveryError, match="does not match"):
                await discover("cid", "secret")

    @pytest.mark.asyncio
    async def test_missing_metadata_raises(self):
        metadata = {k: v for k, v in GOOGLE_METADATA.items() if k != "jwks_uri"}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, metadata), method="get")

            with pytest.raises(OIDCDiscoveryError, match="jwks_uri"):
                await discover("cid", "secret")


class TestAuthorizationUrl:
    """Tests for state/nonce generation and the authorization URL."""

    def test_state_and_nonce_are_independent(self):
        state, nonce = generate_state_nonce()
        assert state and nonce
        assert state != nonce

    def test_values_are_fresh_per_call(self):
        assert generate_state_nonce() != generate_state_nonce()

    def test_url_carries_required_parameters(self, oidc_config: OIDCProviderConfig):
        url = build_authorization_url(
            oidc_config, state="s-1", nonce="n-1", redirect_uri=REDIRECT_URI
        )

        parts = urlsplit(url)
        params = parse_qs(parts.query)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == oidc_config.authorization_endpoint
        assert params == {
            "client_id": ["test-google-client-id"],
            "response_type": ["code"],
            "scope": [OIDC_SCOPE],
            "redirect_uri": [REDIRECT_URI],
            "state": ["s-1"],
            "nonce": ["n-1"],
        }


class TestCallbackVerificationUrl:
    """Tests for build_callback_verification_url."""

    def test_uses_redirect_uri_with_request_query(self):
        url = build_callback_verification_url(
            REDIRECT_URI, "http://internal:3000/auth/google/callback?code=x&state=s"
        )
        assert url == f"{REDIRECT_URI}?code=x&state=s"

    def test_relative_request_url(self):
        url = build_callback_verification_url(REDIRECT_URI, "/auth/google/callback?code=x")
        assert url == f"{REDIRECT_URI}?code=x"

    def test_no_query(self):
        url = build_callback_verification_url(REDIRECT_URI, "/auth/google/callback")
        assert url == REDIRECT_URI


class TestExchangeAuthorizationCode:
    """Tests for exchange_authorization_code."""

    async def _exchange(self, config, url=None, nonce="nonce-1"):
        return await exchange_authorization_code(
            config,
            url or f"{REDIRECT_URI}?code=auth-code&state=s-1",
            expected_state="s-1",
            expected_nonce=nonce,
            redirect_uri=REDIRECT_URI,
        )

    @pytest.mark.asyncio
    async def test_successful_exchange(self, oidc_config, signing_key, jwk_client):
        """Returns verified claims and posts the code with client credentials."""
        id_token = make_id_token(signing_key)
        body = {"id_token": id_token, "access_token": "at", "expires_in": 3599}

        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_async_client(mock_client, json_response(200, body))

            result = await self._exchange(oidc_config)

            call_args = instance.post.call_args
            assert call_args[0][0] == "https://oauth2.googleapis.com/token"
            assert call_args[1]["data"] == {
                "grant_type": "authorization_code",
                "code": "auth-code",
                "redirect_uri": REDIRECT_URI,
                "client_id": "test-google-client-id",
                "client_secret": "test-google-client-secret",
            }

        assert result.ok is True
        assert result.data.id_token == id_token
        # Only the verified identity is kept from the token response
        assert set(asdict(result.data)) == {"id_token", "claims"}
        assert result.data.claims["sub"] == "1"
        assert result.data.claims["email"] == "a@example.com"

    @pytest.mark.asyncio
    async def test_provider_error_in_callback(self, oidc_config):
        """An error parameter fails without calling the token endpoint."""
        with patch("httpx.AsyncClient") as mock_client:
            result = await self._exchange(
                oidc_config, f"{REDIRECT_URI}?error=access_denied&state=s-1&code=c"
            )
            mock_client.assert_not_called()

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_state_mismatch_in_url(self, oidc_config):
        with patch("httpx.AsyncClient") as mock_client:
            result = await self._exchange(oidc_config, f"{REDIRECT_URI}?code=c&state=other")
            mock_client.assert_not_called()

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_rejected_grant(self, oidc_config):
        body = {"error": "invalid_grant", "error_description": "Bad Request"}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(400, body))

            result = await self._exchange(oidc_config)

        assert result.ok is False
        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_network_error(self, oidc_config):
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, side_effect=httpx.ConnectTimeout("timed out"))

            result = await self._exchange(oidc_config)

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_missing_id_token(self, oidc_config):
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, {"access_token": "at"}))

            result = await self._exchange(oidc_config)

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_nonce_mismatch(self, oidc_config, signing_key, jwk_client):
        body = {"id_token": make_id_token(signing_key, nonce="other-nonce")}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, body))

            result = await self._exchange(oidc_config)

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_wrong_audience(self, oidc_config, signing_key, jwk_client):
        body = {"id_token": make_id_token(signing_key, aud="someone-else")}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, body))

            result = await self._exchange(oidc_config)

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_expired_id_token(self, oidc_config, signing_key, jwk_client):
        past = int(time.time()) - 7200
        body = {"id_token": make_id_token(signing_key, iat=past, exp=past + 60)}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, body))

            result = await self._exchange(oidc_config)

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED

    @pytest.mark.asyncio
    async def test_token_signed_by_unknown_key(self, oidc_config, jwk_client):
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        body = {"id_token": make_id_token(other_key)}
        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, json_response(200, body))

            result = await self._exchange(oidc_config)

        assert result.error == AuthError.OAUTH_EXCHANGE_FAILED
