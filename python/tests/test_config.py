"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from booklog.config import Environment, Settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "DATABASE_URL": "sqlite+pysqlite:///:memory:",
        "BOOKLOG_ENV": "test",
        "SUPABASE_JWKS_URL": "http://localhost:54321/auth/v1/.well-known/jwks.json",
        "SUPABASE_ISSUER": "http://localhost:54321/auth/v1/",
        "SUPABASE_AUDIENCES": "authenticated, anon ,",
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestRequiredSettings:
    def test_missing_supabase_settings_rejected(self):
        with pytest.raises(ValidationError, match="SUPABASE_JWKS_URL"):
            _make_settings(SUPABASE_JWKS_URL="")

    def test_internal_secret_required_in_prod(self):
        with pytest.raises(ValidationError, match="BOOKLOG_INTERNAL_SECRET"):
            _make_settings(BOOKLOG_ENV="prod", BOOKLOG_INTERNAL_SECRET=None)

    def test_internal_secret_optional_in_test(self):
        s = _make_settings()
        assert s.booklog_env == Environment.TEST
        assert s.requires_internal_header is False

    def test_staging_requires_internal_header(self):
        s = _make_settings(BOOKLOG_ENV="staging", BOOKLOG_INTERNAL_SECRET="s3cret")
        assert s.requires_internal_header is True


class TestDerivedSettings:
    def test_audiences_are_split_and_trimmed(self):
        assert _make_settings().audience_list == ["authenticated", "anon"]

    def test_issuer_trailing_slash_stripped(self):
        assert _make_settings().normalized_issuer == "http://localhost:54321/auth/v1"

    def test_auth_service_requires_url_and_key(self):
        assert _make_settings(SUPABASE_URL=None, SUPABASE_ANON_KEY=None).auth_service_configured is False
        assert (
            _make_settings(
                SUPABASE_URL="http://localhost:54321", SUPABASE_ANON_KEY="anon"
            ).auth_service_configured
            is True
        )


class TestSearchResultLimit:
    def test_default(self):
        assert _make_settings().search_result_limit == 10

    def test_override(self):
        assert _make_settings(SEARCH_RESULT_LIMIT=25).search_result_limit == 25

    @pytest.mark.parametrize("value", [0, 51])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(ValidationError, match="SEARCH_RESULT_LIMIT"):
            _make_settings(SEARCH_RESULT_LIMIT=value)
