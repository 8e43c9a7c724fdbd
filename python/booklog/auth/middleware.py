"""Authentication middleware (the session gate).

Provides:
- AuthMiddleware: bearer token + internal header verification on every non-public path
- get_viewer: Dependency for accessing the authenticated viewer identity
- get_access_token: Dependency for the raw bearer token (forwarded to GoTrue)
"""

import hmac
import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from booklog.auth.verifier import TokenVerifier
from booklog.errors import ApiError, ApiErrorCode
from booklog.responses import error_response

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "authorization"
INTERNAL_HEADER = "x-booklog-internal"

# Paths that don't require authentication
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/auth/signin",
    "/auth/signup",
    "/auth/password/reset",
}


@dataclass
class Viewer:
    """Authenticated viewer identity.

    Attributes:
        user_id: The viewer's user ID (from JWT sub claim).
        email: The viewer's email (from JWT email claim), if present.
    """

    user_id: UUID
    email: str | None = None


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication middleware for FastAPI.

    Order of checks:
    1. Skip if public path
    2. Verify internal header (if required)
    3. Extract and parse bearer token
    4. Verify token via TokenVerifier
    5. Call bootstrap callback to ensure the user mirror row exists
    6. Attach Viewer and access token to request state
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        requires_internal_header: bool = False,
        internal_secret: str | None = None,
        bootstrap_callback: Callable[[UUID, str | None], None] | None = None,
    ):
        """Initialize the auth middleware.

        Args:
            app: The ASGI application.
            verifier: TokenVerifier implementation for JWT verification.
            requires_internal_header: Whether to enforce X-Booklog-Internal header.
            internal_secret: The expected internal secret value.
            bootstrap_callback: Function(user_id, email) called after successful auth.
        """
        super().__init__(app)
        self.verifier = verifier
        self.requires_internal_header = requires_internal_header
        self.internal_secret = internal_secret
        self.bootstrap_callback = bootstrap_callback

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        if self.requires_internal_header:
            failure = self._verify_internal_header(request)
            if failure:
                return failure

        token = self._extract_bearer_token(request)
        if token is None:
            return self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED, "Authentication required", 401
            )

        try:
            payload = self.verifier.verify(token)
        except ApiError as e:
            return self._error_json_response(e.code, e.message, e.status_code)

        user_id = UUID(payload["sub"])
        email = payload.get("email")

        if self.bootstrap_callback:
            try:
                self.bootstrap_callback(user_id, email)
            except Exception as e:
                logger.exception("Bootstrap failed for user %s: %s", user_id, e)
                return self._error_json_response(
                    ApiErrorCode.E_INTERNAL, "Internal server error", 500
                )

        request.state.viewer = Viewer(user_id=user_id, email=email)
        request.state.access_token = token

        return await call_next(request)

    def _verify_internal_header(self, request: Request) -> JSONResponse | None:
        """Verify the internal header using constant-time comparison."""
        header_value = request.headers.get(INTERNAL_HEADER)

        if not self.internal_secret:
            logger.error("Internal secret not configured but header required")
            return self._error_json_response(ApiErrorCode.E_INTERNAL, "Internal server error", 500)

        if header_value is None or not hmac.compare_digest(
            header_value.encode(), self.internal_secret.encode()
        ):
            logger.warning(
                "auth_failure",
                extra={
                    "reason": "internal_header_missing"
                    if header_value is None
                    else "internal_header_mismatch",
                    "request_path": request.url.path,
                },
            )
            return self._error_json_response(
                ApiErrorCode.E_INTERNAL_ONLY, "Internal API access required", 403
            )

        return None

    def _extract_bearer_token(self, request: Request) -> str | None:
        """Extract the bearer token, or None if the header is missing or malformed."""
        auth_header = request.headers.get(AUTHORIZATION_HEADER)

        if not auth_header:
            reason = "missing_header"
        elif not auth_header.lower().startswith("bearer ") or not auth_header[7:].strip():
            reason = "invalid_header_format"
        else:
            return auth_header[7:].strip()

        logger.warning("auth_failure", extra={"reason": reason, "request_path": request.url.path})
        return None

    def _error_json_response(
        self, code: ApiErrorCode, message: str, status_code: int
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=error_response(code, message),
        )


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency to get the authenticated viewer.

    Raises:
        ApiError: If viewer is not set (middleware didn't run or path is public).
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer


def get_access_token(request: Request) -> str:
    """FastAPI dependency returning the verified bearer token of the request."""
    token = getattr(request.state, "access_token", None)
    if token is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return token


# Type alias for dependency injection
ViewerDep = Depends(get_viewer)
