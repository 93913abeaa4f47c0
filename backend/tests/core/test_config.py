"""
Tests for settings parsing.
"""

from vetdesk.core.config import Settings, parse_list


class TestParseList:
    def test_comma_separated(self):
        assert parse_list("a.example.com, b.example.com,") == ["a.example.com", "b.example.com"]

    def test_list_passes_through(self):
        assert parse_list(["a"]) == ["a"]


class TestSettings:
    def test_redirect_uri_from_public_url(self):
        settings = Settings(PUBLIC_URL="https://api.example.com/")
        assert settings.OAUTH_REDIRECT_URI == "https://api.example.com/auth/google/callback"

    def test_app_origin_is_always_allowed(self):
        settings = Settings(APP_ORIGIN="https://ui.example.com/", ALLOWED_APP_ORIGINS=["tenant*.app.local"])
        assert settings.all_allowed_app_origins == ["tenant*.app.local", "https://ui.example.com"]

    def test_database_url_override(self):
        settings = Settings(DATABASE_URL="sqlite:///./vetdesk.db")
        assert settings.SQLALCHEMY_DATABASE_URI == "sqlite:///./vetdesk.db"

    def test_postgres_uri(self):
        settings = Settings(
            DATABASE_URL=None,
            POSTGRES_SERVER="db",
            POSTGRES_USER="u",
            POSTGRES_PASSWORD="p",
            POSTGRES_DB="clinic",
        )
        assert settings.SQLALCHEMY_DATABASE_URI == "postgresql+psycopg://u:p@db:5432/clinic"
