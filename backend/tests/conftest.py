"""
Pytest configuration and fixtures for backend tests.

This module is automatically loaded by pytest and provides:
- TESTING environment flag to disable .env loading
- Shared fixtures for database sessions, provider config and test clients
"""

import os

# Set TESTING flag BEFORE any vetdesk imports
# This prevents loading .env file during tests, ensuring test isolation
os.environ["TESTING"] = "1"

# OIDC test credentials - explicit values for test isolation
os.environ["GOOGLE_CLIENT_ID"] = "test-google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-google-client-secret"
os.environ["PUBLIC_URL"] = "https://api.example.com"

# Web app origins allowed to start a login
os.environ["APP_ORIGIN"] = "https://ui.example.com"
os.environ["ALLOWED_APP_ORIGINS"] = "https://ui.example.com,tenant*.app.local"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from vetdesk.main import app
from vetdesk.api.cookies import SESSION_COOKIE_NAME
from vetdesk.api.deps import get_db, get_oidc_config
from vetdesk.crud.session import create_user_session
from vetdesk.models import User
from vetdesk.services.oidc_client import OIDCProviderConfig


@pytest.fixture(name="session")
def session_fixture():
    """Create a new in-memory database session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="oidc_config")
def oidc_config_fixture() -> OIDCProviderConfig:
    """Provider config as returned by discovery against Google."""
    return OIDCProviderConfig(
        issuer="https://accounts.google.com",
        authorization_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
        token_endpoint="https://oauth2.googleapis.com/token",
        jwks_uri="https://www.googleapis.com/oauth2/v3/certs",
        userinfo_endpoint="https://openidconnect.googleapis.com/v1/userinfo",
        client_id="test-google-client-id",
        client_secret="test-google-client-secret",
    )


@pytest.fixture(name="client")
def client_fixture(session: Session, oidc_config: OIDCProviderConfig):
    """Create a test client with database session and provider overrides."""

    def get_session_override():
        return session

    def get_oidc_config_override():
        return oidc_config

    app.dependency_overrides[get_db] = get_session_override
    app.dependency_overrides[get_oidc_config] = get_oidc_config_override
    # Auth cookies are Secure, so the client must talk https to send them back
    client = TestClient(app, base_url="https://testserver")
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="signed_in_user")
def signed_in_user_fixture(client: TestClient, session: Session) -> User:
    """Create a user with a live session and put its cookie on the client."""
    user = User(email="vet@example.com", google_id="google-sub-1", name="Dr. Vet")
    session.add(user)
    session.commit()
    session.refresh(user)

    user_session = create_user_session(session=session, user=user)
    client.cookies.set(SESSION_COOKIE_NAME, user_session.id)
    return user
