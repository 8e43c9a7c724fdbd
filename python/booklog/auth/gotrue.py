"""Supabase Auth (GoTrue) client.

Thin httpx wrapper over the GoTrue REST API that backs sign-in, sign-up,
sign-out, password reset and password update. All credential handling and
session persistence stays with Supabase; this client only forwards calls and
normalizes failures:

- Transport errors and 5xx responses -> ApiError(E_AUTH_UNAVAILABLE)
- 4xx responses -> ApiError(E_AUTH_FAILED) carrying GoTrue's own message
"""

from dataclasses import dataclass
from typing import Any

import httpx

from booklog.errors import ApiError, ApiErrorCode
from booklog.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthUser:
    """Identity as reported by GoTrue."""

    id: str
    email: str | None


@dataclass(frozen=True)
class AuthSession:
    """Session issued by a successful password sign-in."""

    access_token: str
    refresh_token: str | None
    expires_in: int | None
    token_type: str
    user: AuthUser


@dataclass(frozen=True)
class SignUpResult:
    """Outcome of a sign-up.

    GoTrue returns no session when the project requires email confirmation,
    and an empty identities list when the address is already registered
    (the response is obfuscated so the two look the same to the caller).
    """

    user: AuthUser | None
    session: AuthSession | None

    @property
    def confirmation_required(self) -> bool:
        return self.session is None


def _parse_user(data: dict[str, Any] | None) -> AuthUser | None:
    if not data or not data.get("id"):
        return None
    return AuthUser(id=str(data["id"]), email=data.get("email"))


def _parse_session(data: dict[str, Any]) -> AuthSession | None:
    if not data.get("access_token"):
        return None
    user = _parse_user(data.get("user"))
    if user is None:
        return None
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_in=data.get("expires_in"),
        token_type=data.get("token_type", "bearer"),
        user=user,
    )


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a GoTrue error body.

    Newer GoTrue versions use `msg`, older ones `error_description`/`message`.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text or "Authentication request failed"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return "Authentication request failed"


class SupabaseAuthClient:
    """GoTrue client bound to one Supabase project."""

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        *,
        timeout_s: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        """Initialize the auth client.

        Args:
            supabase_url: Supabase project URL (e.g., https://xxx.supabase.co).
            anon_key: Public anon key, sent as the `apikey` header.
            timeout_s: Per-request timeout.
            http_client: Shared client (owned by the app lifespan). A private
                client is opened per call when omitted.
        """
        self._auth_url = f"{supabase_url.rstrip('/')}/auth/v1"
        self._anon_key = anon_key
        self._timeout = httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0))
        self._http_client = http_client

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self._anon_key}
        headers["Authorization"] = f"Bearer {access_token or self._anon_key}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self._auth_url}{path}"
        try:
            if self._http_client is not None:
                response = self._http_client.request(
                    method,
                    url,
                    headers=self._headers(access_token),
                    json=json,
                    params=params,
                    timeout=self._timeout,
                )
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.request(
                        method, url, headers=self._headers(access_token), json=json, params=params
                    )
        except httpx.HTTPError as e:
            logger.warning("gotrue_unreachable", path=path, error=str(e))
            raise ApiError(
                ApiErrorCode.E_AUTH_UNAVAILABLE, "Authentication service unavailable"
            ) from e

        if response.status_code >= 500:
            logger.warning("gotrue_server_error", path=path, status_code=response.status_code)
            raise ApiError(ApiErrorCode.E_AUTH_UNAVAILABLE, "Authentication service unavailable")

        if response.status_code >= 400:
            message = _error_message(response)
            logger.info(
                "gotrue_request_rejected",
                path=path,
                status_code=response.status_code,
                message=message,
            )
            if response.status_code == 401:
                raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, message)
            raise ApiError(ApiErrorCode.E_AUTH_FAILED, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a session."""
        data = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = _parse_session(data or {})
        if session is None:
            raise ApiError(ApiErrorCode.E_AUTH_FAILED, "Sign in returned no session")
        return session

    def sign_up(self, email: str, password: str, redirect_to: str | None = None) -> SignUpResult:
        """Register a new account.

        The response is either a session (autoconfirm) or the bare user
        object (confirmation email sent).
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        data = self._request(
            "POST", "/signup", json={"email": email, "password": password}, params=params
        ) or {}
        session = _parse_session(data)
        if session is not None:
            return SignUpResult(user=session.user, session=session)
        user = _parse_user(data.get("user") if "user" in data else data)
        if user is not None and data.get("identities") == []:
            logger.info("gotrue_signup_obfuscated_user")
        return SignUpResult(user=user, session=None)

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind the given access token."""
        self._request("POST", "/logout", access_token=access_token)

    def request_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        """Send a password reset email."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        self._request("POST", "/recover", json={"email": email}, params=params)

    def update_password(self, access_token: str, password: str) -> AuthUser:
        """Set a new password for the session established by a reset link."""
        data = self._request("PUT", "/user", access_token=access_token, json={"password": password})
        user = _parse_user(data)
        if user is None:
            raise ApiError(ApiErrorCode.E_AUTH_FAILED, "Password update returned no user")
        return user

    def get_user(self, access_token: str) -> AuthUser:
        """Fetch the identity behind an access token."""
        user = _parse_user(self._request("GET", "/user", access_token=access_token))
        if user is None:
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "No user for this session")
        return user
