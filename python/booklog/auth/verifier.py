"""Token verification.

Provides:
- TokenVerifier: Protocol for token verification
- SupabaseJwksVerifier: Verifier using the Supabase JWKS endpoint
- decode_claims: Shared jwt.decode + error mapping used by every verifier

Test-only verifiers live in tests/support/test_verifier.py.
"""

import logging
import threading
from typing import Any, Protocol
from uuid import UUID

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKClientError,
)

from booklog.errors import ApiError, ApiErrorCode

logger = logging.getLogger(__name__)

# Clock skew allowance in seconds
CLOCK_SKEW_SECONDS = 60

# Most specific first: every entry is a subclass of InvalidTokenError
_JWT_ERRORS: list[tuple[type[InvalidTokenError], str, str]] = [
    (ExpiredSignatureError, "expired_token", "Token expired"),
    (InvalidSignatureError, "invalid_signature", "Invalid token signature"),
    (InvalidIssuerError, "invalid_issuer", "Invalid token issuer"),
    (InvalidAudienceError, "invalid_audience", "Invalid token audience"),
    (DecodeError, "decode_error", "Invalid token format"),
    (InvalidTokenError, "invalid_token", "Invalid token"),
]


class TokenVerifier(Protocol):
    """Protocol for token verification."""

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid, expired, or malformed.
            ApiError(E_AUTH_UNAVAILABLE): Infrastructure failure (JWKS unreachable).
        """
        ...


def decode_claims(
    token: str,
    key: Any,
    *,
    algorithms: list[str],
    issuer: str,
    audiences: list[str],
) -> dict[str, Any]:
    """Decode and validate a JWT, mapping failures to E_UNAUTHENTICATED.

    Validates exp (with clock skew), iss, aud, and that sub is a UUID.
    """
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=audiences,
            issuer=issuer,
            leeway=CLOCK_SKEW_SECONDS,
            options={
                "require": ["exp", "iss", "sub"],
                "verify_aud": True,
            },
        )
    except InvalidTokenError as e:
        for error_type, reason, message in _JWT_ERRORS:
            if isinstance(e, error_type):
                logger.warning("auth_failure", extra={"reason": reason})
                raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, message) from e
        raise

    sub = payload.get("sub")
    if not sub:
        logger.warning("auth_failure", extra={"reason": "missing_sub"})
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token: missing sub")

    try:
        UUID(sub)
    except (ValueError, TypeError) as e:
        logger.warning("auth_failure", extra={"reason": "invalid_sub"})
        raise ApiError(
            ApiErrorCode.E_UNAUTHENTICATED, "Invalid token: sub is not a valid UUID"
        ) from e

    return payload


class SupabaseJwksVerifier:
    """Production token verifier using Supabase JWKS.

    Supabase cloud signs with RS256, Supabase local with ES256; the JWKS
    determines which key applies. On a kid miss the JWKS is refetched once.
    """

    def __init__(
        self,
        jwks_url: str,
        issuer: str,
        audiences: list[str],
        cache_ttl: int = 3600,
    ):
        self.jwks_url = jwks_url
        self.issuer = issuer.rstrip("/")
        self.audiences = audiences
        self.cache_ttl = cache_ttl

        self._jwks_client: PyJWKClient | None = None
        self._jwks_lock = threading.Lock()

    def _new_jwks_client(self) -> PyJWKClient:
        return PyJWKClient(self.jwks_url, cache_keys=True, lifespan=self.cache_ttl)

    def _get_jwks_client(self, refresh: bool = False) -> PyJWKClient:
        with self._jwks_lock:
            if self._jwks_client is None or refresh:
                self._jwks_client = self._new_jwks_client()
            return self._jwks_client

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a Supabase JWT token."""
        try:
            signing_key = self._get_signing_key(token)
        except PyJWKClientError as e:
            logger.warning("auth_failure", extra={"reason": "jwks_unavailable", "error": str(e)})
            raise ApiError(
                ApiErrorCode.E_AUTH_UNAVAILABLE,
                "Authentication service unavailable",
            ) from e

        return decode_claims(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            issuer=self.issuer,
            audiences=self.audiences,
        )

    def _get_signing_key(self, token: str) -> Any:
        """Get the signing key for the token, refreshing the JWKS once on kid miss.

        Raises:
            PyJWKClientError: If JWKS fetch fails.
            ApiError(E_UNAUTHENTICATED): If kid not found after refresh.
        """
        try:
            return self._get_jwks_client().get_signing_key_from_jwt(token)
        except PyJWKClientError as e:
            if "Unable to find" not in str(e) and "kid" not in str(e).lower():
                raise

        logger.info("jwks_refresh_on_kid_miss")
        try:
            return self._get_jwks_client(refresh=True).get_signing_key_from_jwt(token)
        except PyJWKClientError as retry_e:
            logger.warning("auth_failure", extra={"reason": "kid_not_found"})
            raise ApiError(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Invalid token: signing key not found",
            ) from retry_e
