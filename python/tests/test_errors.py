"""Tests for error handling and response envelopes.

Verifies:
- Error envelope shape is correct
- Every error code maps to correct HTTP status
- Validator messages surface through the 400 envelope
- Unknown exceptions return E_INTERNAL with 500
- Malformed JSON returns E_INVALID_REQUEST
"""

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel, field_validator

from booklog.errors import (
    ERROR_CODE_TO_STATUS,
    ApiError,
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)
from booklog.responses import (
    error_response,
    success_response,
    unhandled_exception_handler,
    validation_error_handler,
)


class TestErrorResponse:
    """Tests for error response envelope format."""

    def test_error_response_has_correct_shape(self):
        """Error response contains error object with code and message."""
        response = error_response(ApiErrorCode.E_NOT_FOUND, "Resource not found")

        assert response["error"]["code"] == "E_NOT_FOUND"
        assert response["error"]["message"] == "Resource not found"

    def test_error_response_code_is_string(self):
        """Error code in response is a string, not enum."""
        response = error_response(ApiErrorCode.E_FORBIDDEN, "Access denied")

        assert isinstance(response["error"]["code"], str)

    def test_explicit_request_id_included(self):
        response = error_response(ApiErrorCode.E_INTERNAL, "boom", request_id="req-1")

        assert response["error"]["request_id"] == "req-1"


class TestSuccessResponse:
    """Tests for success response envelope format."""

    def test_success_response_has_data_key(self):
        response = success_response({"id": 1, "title": "Dune"})

        assert response == {"data": {"id": 1, "title": "Dune"}}

    def test_success_response_with_list(self):
        items = [{"id": 1}, {"id": 2}]

        assert success_response(items)["data"] == items


class TestErrorCodeToStatus:
    """Tests for error code to HTTP status mapping."""

    def test_all_error_codes_have_status_mapping(self):
        """Every ApiErrorCode has a corresponding HTTP status."""
        for code in ApiErrorCode:
            assert code in ERROR_CODE_TO_STATUS, f"Missing status mapping for {code}"

    @pytest.mark.parametrize(
        "code,expected_status",
        [
            (ApiErrorCode.E_UNAUTHENTICATED, 401),
            (ApiErrorCode.E_FORBIDDEN, 403),
            (ApiErrorCode.E_INTERNAL_ONLY, 403),
            (ApiErrorCode.E_NOT_FOUND, 404),
            (ApiErrorCode.E_BOOK_NOT_FOUND, 404),
            (ApiErrorCode.E_LOG_NOT_FOUND, 404),
            (ApiErrorCode.E_NOTE_NOT_FOUND, 404),
            (ApiErrorCode.E_CHAPTER_NOT_FOUND, 404),
            (ApiErrorCode.E_INVALID_REQUEST, 400),
            (ApiErrorCode.E_TAG_NAME_INVALID, 400),
            (ApiErrorCode.E_AUTH_FAILED, 400),
            (ApiErrorCode.E_BOOK_CONFLICT, 409),
            (ApiErrorCode.E_AUTH_UNAVAILABLE, 503),
            (ApiErrorCode.E_INTERNAL, 500),
        ],
    )
    def test_error_code_maps_to_correct_status(self, code: ApiErrorCode, expected_status: int):
        assert ERROR_CODE_TO_STATUS[code] == expected_status


class TestApiErrorClass:
    """Tests for ApiError exception classes."""

    def test_api_error_derives_status_code(self):
        error = ApiError(ApiErrorCode.E_FORBIDDEN, "Access denied")

        assert error.code == ApiErrorCode.E_FORBIDDEN
        assert error.message == "Access denied"
        assert error.status_code == 403

    def test_not_found_error_defaults(self):
        error = NotFoundError()

        assert error.code == ApiErrorCode.E_NOT_FOUND
        assert error.status_code == 404

    def test_invalid_request_error_defaults(self):
        error = InvalidRequestError()

        assert error.code == ApiErrorCode.E_INVALID_REQUEST
        assert error.status_code == 400

    def test_conflict_error_status(self):
        error = ConflictError(ApiErrorCode.E_BOOK_CONFLICT)

        assert error.status_code == 409


class _Body(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required.")
        return v


def _validation_app() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.post("/echo")
    def echo(body: _Body) -> dict:
        return {"name": body.name}

    return app


class TestValidationErrors:
    """Request validation failures answer 400 E_INVALID_REQUEST."""

    def test_validator_message_is_surfaced(self):
        client = TestClient(_validation_app())

        response = client.post("/echo", json={"name": "  "})

        assert response.status_code == 400
        assert response.json()["error"] == {
            "code": "E_INVALID_REQUEST",
            "message": "Name is required.",
        }

    def test_schema_errors_use_generic_message(self):
        client = TestClient(_validation_app())

        response = client.post("/echo", json={})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid request body"


class TestMalformedJsonHandling:
    """Tests for malformed JSON body handling."""

    def test_malformed_json_returns_400(self, client: TestClient):
        response = client.post(
            "/books",
            content="{invalid json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"


class TestUnhandledExceptionHandling:
    """Tests for unhandled exception handling."""

    def test_unhandled_exception_returns_500_without_details(self):
        test_app = FastAPI()

        @test_app.get("/crash")
        def crash_endpoint():
            raise RuntimeError("SECRET_INTERNAL_DETAIL")

        test_app.add_exception_handler(Exception, unhandled_exception_handler)

        client = TestClient(test_app, raise_server_exceptions=False)
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "E_INTERNAL"
        assert "SECRET_INTERNAL_DETAIL" not in response.text
