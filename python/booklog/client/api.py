"""Async HTTP client for the Booklog API.

Unwraps the `{"data": ...}` envelope on success and raises ClientError
carrying the API's error code and message otherwise. Transport failures
(connection refused, timeouts) surface as ClientError(E_NETWORK) so views
handle every failure through one exception type.

No call is retried.
"""

from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from booklog.logging import get_logger
from booklog.schemas.auth import (
    PasswordResetRequest,
    SignInRequest,
    SignUpRequest,
    UpdatePasswordRequest,
)

logger = get_logger(__name__)

E_NETWORK = "E_NETWORK"
E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
E_INVALID_REQUEST = "E_INVALID_REQUEST"

# Marks fields left out of a partial update (None is a real value there)
UNSET: Any = object()


class ClientError(Exception):
    """A failed API call.

    Attributes:
        code: API error code (E_...), or E_NETWORK for transport failures.
        message: Human-readable message from the API.
        status_code: HTTP status, or None when no response was received.
    """

    def __init__(self, code: str, message: str, status_code: int | None = None):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_unauthenticated(self) -> bool:
        return self.code == E_UNAUTHENTICATED or self.status_code == 401


def _partial(**fields: Any) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not UNSET}


def _validated(schema: type[BaseModel], **fields: Any) -> dict[str, Any]:
    """Validate a request body locally so bad input never reaches the network."""
    try:
        return schema(**fields).model_dump()
    except ValidationError as e:
        msg = str(e.errors()[0].get("msg", "Invalid input"))
        raise ClientError(E_INVALID_REQUEST, msg.removeprefix("Value error, ")) from e


class BooklogClient:
    """Client bound to one API base URL and (after sign-in) one session."""

    def __init__(
        self,
        base_url: str,
        *,
        access_token: str | None = None,
        timeout_s: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0)),
        )
        self.access_token = access_token

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "BooklogClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.warning("api_unreachable", method=method, path=path, error=str(e))
            raise ClientError(E_NETWORK, "Network error. Please try again.") from e

        if response.status_code == 204:
            return None

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            error = body.get("error") if isinstance(body, dict) else None
            if not isinstance(error, dict):
                raise ClientError("E_INTERNAL", "Unexpected response", response.status_code)
            raise ClientError(
                error.get("code", "E_INTERNAL"),
                error.get("message", "Request failed"),
                response.status_code,
            )

        if not isinstance(body, dict) or "data" not in body:
            raise ClientError("E_INTERNAL", "Unexpected response", response.status_code)
        return body["data"]

    # =========================================================================
    # Session
    # =========================================================================

    async def get_me(self) -> dict[str, Any]:
        return await self._request("GET", "/me")

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Sign in and keep the session's access token for later calls."""
        body = _validated(SignInRequest, email=email, password=password)
        session = await self._request("POST", "/auth/signin", json=body)
        self.access_token = session["access_token"]
        return session

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        body = _validated(SignUpRequest, email=email, password=password)
        result = await self._request("POST", "/auth/signup", json=body)
        if result.get("session"):
            self.access_token = result["session"]["access_token"]
        return result

    async def sign_out(self) -> None:
        """Revoke the session. The local token is dropped even if the call fails."""
        try:
            await self._request("POST", "/auth/signout")
        finally:
            self.access_token = None

    async def request_password_reset(self, email: str) -> dict[str, Any]:
        body = _validated(PasswordResetRequest, email=email)
        return await self._request("POST", "/auth/password/reset", json=body)

    async def update_password(self, password: str, confirm_password: str) -> dict[str, Any]:
        body = _validated(
            UpdatePasswordRequest, password=password, confirm_password=confirm_password
        )
        return await self._request("POST", "/auth/password/update", json=body)

    # =========================================================================
    # Catalog
    # =========================================================================

    async def search_books(self, q: str) -> list[dict[str, Any]]:
        return await self._request("GET", "/books/search", params={"q": q})

    async def create_book(
        self,
        title: str,
        author: str | None = None,
        isbn: str | None = None,
        cover_image_url: str | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/books",
            json={
                "title": title,
                "author": author,
                "isbn": isbn,
                "cover_image_url": cover_image_url,
            },
        )

    # =========================================================================
    # Logs
    # =========================================================================

    async def log_book(
        self,
        book_id: int,
        rating: int | None = None,
        review_text: str | None = None,
        note: str | None = None,
        chapter: str | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "PUT",
            "/logs",
            json={
                "book_id": book_id,
                "rating": rating,
                "review_text": review_text,
                "note": note,
                "chapter": chapter,
            },
        )

    async def list_logs(self, tag_id: int | None = None) -> list[dict[str, Any]]:
        params = {"tag_id": tag_id} if tag_id is not None else None
        return await self._request("GET", "/logs", params=params)

    async def get_log_detail(self, log_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/logs/{log_id}")

    async def update_log(
        self, log_id: int, *, rating: Any = UNSET, review_text: Any = UNSET
    ) -> dict[str, Any]:
        """Edit a log. Fields left UNSET are not sent; rating=None clears the rating."""
        return await self._request(
            "PATCH", f"/logs/{log_id}", json=_partial(rating=rating, review_text=review_text)
        )

    # =========================================================================
    # Notes & chapters
    # =========================================================================

    async def list_notes(self, log_id: int) -> list[dict[str, Any]]:
        return await self._request("GET", f"/logs/{log_id}/notes")

    async def create_note(
        self, log_id: int, note_text: str, chapter: str | None = None
    ) -> dict[str, Any]:
        return await self._request(
            "POST", f"/logs/{log_id}/notes", json={"note_text": note_text, "chapter": chapter}
        )

    async def update_note(
        self, note_id: int, *, note_text: Any = UNSET, chapter: Any = UNSET
    ) -> dict[str, Any]:
        return await self._request(
            "PATCH", f"/notes/{note_id}", json=_partial(note_text=note_text, chapter=chapter)
        )

    async def list_chapters(self, log_id: int) -> list[dict[str, Any]]:
        return await self._request("GET", f"/logs/{log_id}/chapters")

    async def create_chapter(self, log_id: int, chapter_title: str) -> dict[str, Any]:
        return await self._request(
            "POST", f"/logs/{log_id}/chapters", json={"chapter_title": chapter_title}
        )

    async def update_chapter(
        self, chapter_id: int, *, chapter_title: Any = UNSET
    ) -> dict[str, Any]:
        return await self._request(
            "PATCH", f"/chapters/{chapter_id}", json=_partial(chapter_title=chapter_title)
        )

    # =========================================================================
    # Tags
    # =========================================================================

    async def list_tags(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/tags")

    async def attach_tag(self, log_id: int, name: str) -> dict[str, Any]:
        return await self._request("POST", f"/logs/{log_id}/tags", json={"name": name})

    async def detach_tag(self, log_id: int, tag_id: int) -> None:
        await self._request("DELETE", f"/logs/{log_id}/tags/{tag_id}")
