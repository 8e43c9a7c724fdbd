"""Auth service routes.

Sign-in, sign-up and password-reset requests are public; sign-out and
password update act on the bearer session (for password update, the
session established by the reset link).
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from booklog.api.deps import get_auth_client
from booklog.auth.gotrue import SupabaseAuthClient
from booklog.auth.middleware import get_access_token
from booklog.config import get_settings
from booklog.responses import success_response
from booklog.schemas.auth import (
    PasswordResetRequest,
    SignInRequest,
    SignUpRequest,
    UpdatePasswordRequest,
)
from booklog.services import auth as auth_service

router = APIRouter(prefix="/auth")


@router.post("/signin")
def sign_in(
    request: SignInRequest,
    client: Annotated[SupabaseAuthClient, Depends(get_auth_client)],
) -> dict:
    """Exchange email + password for a session.

    Errors:
        E_AUTH_FAILED (400): Wrong credentials or unconfirmed email.
        E_AUTH_UNAVAILABLE (503): Auth service unreachable or not configured.
    """
    result = auth_service.sign_in(client, request)
    return success_response(result.model_dump(mode="json"))


@router.post("/signup")
def sign_up(
    request: SignUpRequest,
    client: Annotated[SupabaseAuthClient, Depends(get_auth_client)],
) -> dict:
    """Register an account.

    `confirmation_required` tells the client whether to ask the user to
    verify their email before signing in.
    """
    result = auth_service.sign_up(client, request)
    return success_response(result.model_dump(mode="json"))


@router.post("/signout")
def sign_out(
    access_token: Annotated[str, Depends(get_access_token)],
    client: Annotated[SupabaseAuthClient, Depends(get_auth_client)],
) -> dict:
    """Revoke the current session."""
    auth_service.sign_out(client, access_token)
    return success_response({"signed_out": True})


@router.post("/password/reset")
def request_password_reset(
    request: PasswordResetRequest,
    client: Annotated[SupabaseAuthClient, Depends(get_auth_client)],
) -> dict:
    """Send a password reset email."""
    result = auth_service.request_password_reset(
        client, request, redirect_to=get_settings().password_reset_redirect_url
    )
    return success_response(result)


@router.post("/password/update")
def update_password(
    request: UpdatePasswordRequest,
    access_token: Annotated[str, Depends(get_access_token)],
    client: Annotated[SupabaseAuthClient, Depends(get_auth_client)],
) -> dict:
    """Set a new password for the current (reset-link) session.

    Errors:
        E_INVALID_REQUEST (400): "Passwords do not match." or password too short.
    """
    result = auth_service.update_password(client, access_token, request)
    return success_response(result)
