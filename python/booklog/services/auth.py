"""Auth service operations.

Forwards sign-in, sign-up, sign-out, password reset and password update to
Supabase Auth and shapes the results for the API. Input validation has
already happened in the request schemas by the time these run.
"""

from booklog.auth.gotrue import AuthSession, SupabaseAuthClient
from booklog.logging import get_logger
from booklog.schemas.auth import (
    PasswordResetRequest,
    SessionOut,
    SignInRequest,
    SignUpOut,
    SignUpRequest,
    UpdatePasswordRequest,
)

logger = get_logger(__name__)

SIGNUP_CONFIRM_EMAIL = "Sign up successful! Please check your email to verify your account."
SIGNUP_READY = "Sign up successful! You can now sign in."
PASSWORD_RESET_SENT = "Password reset instructions sent. Please check your email."
PASSWORD_UPDATED = "Password updated successfully."


def _session_out(session: AuthSession) -> SessionOut:
    return SessionOut(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        token_type=session.token_type,
        user_id=session.user.id,
        email=session.user.email,
    )


def sign_in(client: SupabaseAuthClient, req: SignInRequest) -> SessionOut:
    session = client.sign_in_with_password(req.email, req.password)
    logger.info("sign_in_succeeded", user_id=session.user.id)
    return _session_out(session)


def sign_up(
    client: SupabaseAuthClient, req: SignUpRequest, redirect_to: str | None = None
) -> SignUpOut:
    """Register an account.

    The message tells the user whether to confirm their email first.
    """
    result = client.sign_up(req.email, req.password, redirect_to=redirect_to)
    if result.confirmation_required:
        return SignUpOut(confirmation_required=True, message=SIGNUP_CONFIRM_EMAIL)
    return SignUpOut(
        confirmation_required=False,
        message=SIGNUP_READY,
        session=_session_out(result.session),
    )


def sign_out(client: SupabaseAuthClient, access_token: str) -> None:
    client.sign_out(access_token)


def request_password_reset(
    client: SupabaseAuthClient, req: PasswordResetRequest, redirect_to: str | None = None
) -> dict:
    client.request_password_reset(req.email, redirect_to=redirect_to)
    return {"message": PASSWORD_RESET_SENT}


def update_password(
    client: SupabaseAuthClient, access_token: str, req: UpdatePasswordRequest
) -> dict:
    user = client.update_password(access_token, req.password)
    logger.info("password_updated", user_id=user.id)
    return {"message": PASSWORD_UPDATED}
