"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, auth middleware, request-id middleware, and routes.

Token Verification:
- All environments (local, test, staging, prod) use SupabaseJwksVerifier
- Only the configuration values (JWKS URL, issuer, audiences) change

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures all requests (including auth failures) get X-Request-ID

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (verifies auth, bootstraps the user row, sets viewer)
3. Route handler
4. AuthMiddleware (returns response)
5. RequestIDMiddleware (logs, sets response header)

Auth Client Lifecycle:
- httpx.Client is created at startup, stored in app.state
- SupabaseAuthClient wraps the shared client for connection pooling
- Client is closed at shutdown
"""

import json
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from booklog.api.routes import create_api_router
from booklog.auth.gotrue import SupabaseAuthClient
from booklog.auth.middleware import AuthMiddleware
from booklog.auth.verifier import SupabaseJwksVerifier
from booklog.config import get_settings
from booklog.db.session import get_session_factory
from booklog.errors import ApiError, ApiErrorCode
from booklog.logging import configure_logging, get_logger
from booklog.middleware.request_id import RequestIDMiddleware
from booklog.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from booklog.services.bootstrap import create_bootstrap_callback

# Configure structured logging at import time
configure_logging()

logger = get_logger(__name__)


def create_token_verifier() -> SupabaseJwksVerifier:
    """Create the token verifier using Supabase JWKS."""
    settings = get_settings()

    return SupabaseJwksVerifier(
        jwks_url=settings.supabase_jwks_url,  # type: ignore
        issuer=settings.normalized_issuer,  # type: ignore
        audiences=settings.audience_list,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle resources.

    The auth service client is only created when SUPABASE_URL and
    SUPABASE_ANON_KEY are set; without it the /auth/* routes answer
    E_AUTH_UNAVAILABLE and everything else keeps working.
    """
    settings = get_settings()

    http_client = None
    app.state.auth_client = None
    if settings.auth_service_configured:
        http_client = httpx.Client(
            timeout=httpx.Timeout(settings.auth_timeout_s, connect=5.0),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        )
        app.state.auth_client = SupabaseAuthClient(
            settings.supabase_url,  # type: ignore
            settings.supabase_anon_key,  # type: ignore
            timeout_s=settings.auth_timeout_s,
            http_client=http_client,
        )
        logger.info("auth_client_initialized")
    else:
        logger.warning("auth_client_not_configured")

    yield

    if http_client is not None:
        http_client.close()
        logger.info("auth_client_closed")


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier=None,
    session_factory=None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        session_factory: Optional session factory for user bootstrap (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Booklog API",
        description="Backend API for Booklog - a personal reading log",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Handle JSON decode errors from malformed JSON bodies
    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Catch JSON decode errors before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body"
                            ),
                        )
        return await call_next(request)

    # Use router factory to avoid import-time settings loading
    app.include_router(create_api_router())

    # Add auth middleware (runs on all requests except public paths)
    if not skip_auth_middleware:
        verifier = token_verifier or create_token_verifier()
        bootstrap_callback = create_bootstrap_callback(session_factory or get_session_factory())

        app.add_middleware(
            AuthMiddleware,
            verifier=verifier,
            requires_internal_header=settings.requires_internal_header,
            internal_secret=settings.booklog_internal_secret,
            bootstrap_callback=bootstrap_callback,
        )

        logger.info(
            "auth_middleware_enabled",
            env=settings.booklog_env.value,
            internal_header_required=settings.requires_internal_header,
        )

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
