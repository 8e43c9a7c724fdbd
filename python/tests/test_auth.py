"""Integration tests for authentication middleware and bootstrap.

Tests the full auth flow including:
- Bearer token validation
- Internal header enforcement
- User mirror row bootstrap
- GET /me endpoint
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from booklog.app import create_app
from booklog.auth.middleware import AuthMiddleware
from booklog.db.models import User
from booklog.errors import ApiError, ApiErrorCode
from booklog.services.bootstrap import create_bootstrap_callback, ensure_user
from tests.helpers import (
    auth_headers,
    create_test_user_id,
    mint_expired_token,
    mint_test_token,
    mint_token_with_bad_signature,
)
from tests.support.test_verifier import MockJwtVerifier


class TestAuthBoundary:
    """Unauthenticated requests are rejected before reaching any route."""

    def test_no_authorization_header(self, auth_client: TestClient):
        response = auth_client.get("/me")

        assert response.status_code == 401
        data = response.json()
        assert data["error"]["code"] == "E_UNAUTHENTICATED"
        assert data["error"]["message"] == "Authentication required"

    def test_wrong_authorization_format(self, auth_client: TestClient):
        response = auth_client.get("/me", headers={"Authorization": "Basic abc123"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"

    def test_empty_bearer_token(self, auth_client: TestClient):
        response = auth_client.get("/me", headers={"Authorization": "Bearer "})

        assert response.status_code == 401

    def test_invalid_token_bad_signature(self, auth_client: TestClient):
        token = mint_token_with_bad_signature(create_test_user_id())

        response = auth_client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid token signature"

    def test_expired_token(self, auth_client: TestClient):
        token = mint_expired_token(create_test_user_id())

        response = auth_client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Token expired"

    @pytest.mark.parametrize("path", ["/logs", "/tags", "/books/search?q=x", "/auth/signout"])
    def test_protected_routes_require_auth(self, auth_client: TestClient, path: str):
        method = auth_client.post if path == "/auth/signout" else auth_client.get

        response = method(path)

        assert response.status_code == 401


class TestInternalHeaderEnforcement:
    """Tests for internal header enforcement in staging/prod mode."""

    @pytest.fixture
    def staging_client(self, session_factory: sessionmaker[Session]) -> TestClient:
        app = create_app(skip_auth_middleware=True)
        app.add_middleware(
            AuthMiddleware,
            verifier=MockJwtVerifier(),
            requires_internal_header=True,
            internal_secret="test-internal-secret",
            bootstrap_callback=create_bootstrap_callback(session_factory),
        )
        return TestClient(app)

    def test_missing_internal_header(self, staging_client: TestClient):
        response = staging_client.get("/me", headers=auth_headers(create_test_user_id()))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "E_INTERNAL_ONLY"

    def test_wrong_internal_header(self, staging_client: TestClient):
        response = staging_client.get(
            "/me",
            headers={**auth_headers(create_test_user_id()), "X-Booklog-Internal": "nope"},
        )

        assert response.status_code == 403

    def test_correct_internal_header(self, staging_client: TestClient):
        response = staging_client.get(
            "/me",
            headers={
                **auth_headers(create_test_user_id()),
                "X-Booklog-Internal": "test-internal-secret",
            },
        )

        assert response.status_code == 200

    def test_public_path_skips_internal_header(self, staging_client: TestClient):
        assert staging_client.get("/health").status_code == 200


class TestMeEndpoint:
    def test_returns_identity_from_token(self, auth_client: TestClient):
        user_id = create_test_user_id()

        response = auth_client.get("/me", headers=auth_headers(user_id, email="reader@example.com"))

        assert response.status_code == 200
        assert response.json()["data"] == {
            "user_id": str(user_id),
            "email": "reader@example.com",
        }

    def test_first_request_creates_user_row(
        self, auth_client: TestClient, session_factory: sessionmaker[Session]
    ):
        user_id = create_test_user_id()

        auth_client.get("/me", headers=auth_headers(user_id, email="reader@example.com"))
        auth_client.get("/me", headers=auth_headers(user_id, email="reader@example.com"))

        with session_factory() as db:
            count = db.scalar(select(func.count()).select_from(User).where(User.id == user_id))
            user = db.get(User, user_id)
        assert count == 1
        assert user.email == "reader@example.com"


class TestEnsureUser:
    def test_creates_missing_user(self, db_session: Session):
        user_id = create_test_user_id()

        user = ensure_user(db_session, user_id, "a@example.com")

        assert user.id == user_id
        assert user.email == "a@example.com"

    def test_is_idempotent(self, db_session: Session):
        user_id = create_test_user_id()

        ensure_user(db_session, user_id)
        ensure_user(db_session, user_id)

        assert db_session.scalar(select(func.count()).select_from(User)) == 1

    def test_updates_changed_email(self, db_session: Session):
        user_id = create_test_user_id()
        ensure_user(db_session, user_id, "old@example.com")

        user = ensure_user(db_session, user_id, "new@example.com")

        assert user.email == "new@example.com"

    def test_missing_email_keeps_stored_email(self, db_session: Session):
        user_id = create_test_user_id()
        ensure_user(db_session, user_id, "kept@example.com")

        user = ensure_user(db_session, user_id, None)

        assert user.email == "kept@example.com"


class TestTokenClaims:
    """Claim validation shared by every verifier."""

    def test_valid_token_returns_claims(self):
        user_id = create_test_user_id()

        claims = MockJwtVerifier().verify(mint_test_token(user_id))

        assert claims["sub"] == str(user_id)

    def test_wrong_issuer_rejected(self):
        token = mint_test_token(create_test_user_id(), issuer="someone-else")

        with pytest.raises(ApiError) as exc_info:
            MockJwtVerifier().verify(token)

        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED
        assert exc_info.value.message == "Invalid token issuer"

    def test_wrong_audience_rejected(self):
        token = mint_test_token(create_test_user_id(), audience="other-audience")

        with pytest.raises(ApiError) as exc_info:
            MockJwtVerifier().verify(token)

        assert exc_info.value.message == "Invalid token audience"

    def test_non_uuid_sub_rejected(self):
        token = mint_test_token("not-a-uuid")

        with pytest.raises(ApiError) as exc_info:
            MockJwtVerifier().verify(token)

        assert exc_info.value.message == "Invalid token: sub is not a valid UUID"

    def test_garbage_token_rejected(self):
        with pytest.raises(ApiError) as exc_info:
            MockJwtVerifier().verify("not.a.jwt")

        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED
