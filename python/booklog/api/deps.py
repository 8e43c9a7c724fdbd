"""FastAPI dependencies for route handlers.

Common dependencies like database sessions, the auth service client, etc.
"""

from fastapi import Request

from booklog.auth.gotrue import SupabaseAuthClient
from booklog.db.session import get_db, get_session_factory
from booklog.errors import ApiError, ApiErrorCode

__all__ = ["get_auth_client", "get_db", "get_session_factory"]


def get_auth_client(request: Request) -> SupabaseAuthClient:
    """Get the shared Supabase Auth client from app state.

    Raises:
        ApiError(E_AUTH_UNAVAILABLE): SUPABASE_URL / SUPABASE_ANON_KEY not configured.
    """
    client = getattr(request.app.state, "auth_client", None)
    if client is None:
        raise ApiError(ApiErrorCode.E_AUTH_UNAVAILABLE, "Authentication service not configured")
    return client
