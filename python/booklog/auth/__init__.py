"""Authentication module.

This module provides:
- Token verification (Supabase JWKS verifier)
- Auth middleware for FastAPI (the session gate)
- GoTrue client for the auth service operations

Note: Test-only verifiers are in tests/support/test_verifier.py
"""

from booklog.auth.gotrue import SupabaseAuthClient
from booklog.auth.middleware import AuthMiddleware, Viewer, get_viewer
from booklog.auth.verifier import SupabaseJwksVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "SupabaseAuthClient",
    "SupabaseJwksVerifier",
    "TokenVerifier",
]
