"""Application settings loaded from environment variables.

Environment Configuration:
    BOOKLOG_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: Database connection string (required)
    BOOKLOG_INTERNAL_SECRET: Internal API secret (required in staging/prod)

Auth Configuration (required in all environments):
    SUPABASE_JWKS_URL: Full URL to Supabase JWKS endpoint
    SUPABASE_ISSUER: Expected JWT issuer (trailing slash stripped)
    SUPABASE_AUDIENCES: Comma-separated list of allowed audiences

Auth Service Configuration (optional):
    SUPABASE_URL: Supabase project URL, used for GoTrue sign-in/sign-up calls
    SUPABASE_ANON_KEY: Public anon key sent as the GoTrue apikey header
    PASSWORD_RESET_REDIRECT_URL: Where password reset emails send the user
    AUTH_TIMEOUT_S: Timeout for GoTrue calls

Catalog Configuration:
    SEARCH_RESULT_LIMIT: Maximum number of books returned by a title search
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Validation rules:
    - DATABASE_URL is always required
    - SUPABASE_JWKS_URL, SUPABASE_ISSUER, SUPABASE_AUDIENCES are required in all environments
    - BOOKLOG_INTERNAL_SECRET is required in staging and prod only
    """

    booklog_env: Environment = Field(default=Environment.LOCAL, alias="BOOKLOG_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]
    booklog_internal_secret: str | None = Field(default=None, alias="BOOKLOG_INTERNAL_SECRET")

    # Supabase JWT verification (required in all environments)
    supabase_jwks_url: str | None = Field(default=None, alias="SUPABASE_JWKS_URL")
    supabase_issuer: str | None = Field(default=None, alias="SUPABASE_ISSUER")
    supabase_audiences: str | None = Field(default=None, alias="SUPABASE_AUDIENCES")

    # Supabase auth service (GoTrue)
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")
    password_reset_redirect_url: str | None = Field(
        default=None, alias="PASSWORD_RESET_REDIRECT_URL"
    )
    auth_timeout_s: float = Field(default=10.0, alias="AUTH_TIMEOUT_S")

    # Catalog search
    search_result_limit: int = Field(default=10, ge=1, le=50, alias="SEARCH_RESULT_LIMIT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure required settings are set for all environments."""
        missing_auth = []
        if not self.supabase_jwks_url:
            missing_auth.append("SUPABASE_JWKS_URL")
        if not self.supabase_issuer:
            missing_auth.append("SUPABASE_ISSUER")
        if not self.supabase_audiences:
            missing_auth.append("SUPABASE_AUDIENCES")

        if missing_auth:
            raise ValueError(
                f"Missing required Supabase auth settings: {', '.join(missing_auth)}. "
                "Start Supabase local and export its values, or set these environment variables."
            )

        if self.booklog_env in (Environment.STAGING, Environment.PROD):
            if not self.booklog_internal_secret:
                raise ValueError(
                    f"BOOKLOG_INTERNAL_SECRET is required for BOOKLOG_ENV={self.booklog_env.value}"
                )

        return self

    @property
    def requires_internal_header(self) -> bool:
        """Whether requests must include the internal secret header."""
        return self.booklog_env in (Environment.STAGING, Environment.PROD)

    @property
    def audience_list(self) -> list[str]:
        """Parse comma-separated audiences into a list."""
        if self.supabase_audiences:
            return [a.strip() for a in self.supabase_audiences.split(",") if a.strip()]
        return []

    @property
    def normalized_issuer(self) -> str | None:
        """Return issuer with trailing slash stripped."""
        if self.supabase_issuer:
            return self.supabase_issuer.rstrip("/")
        return None

    @property
    def auth_service_configured(self) -> bool:
        """Whether the GoTrue proxy routes can reach Supabase."""
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
