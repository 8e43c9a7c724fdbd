"""Tests for the shared book catalog.

Tests cover:
- Case-insensitive title substring search
- Blank queries answer an empty list without a lookup
- LIKE wildcards match literally
- Result limit
- Contributing a book, ISBN conflicts
"""

from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from booklog.errors import ApiErrorCode, ConflictError
from booklog.schemas.books import CreateBookRequest
from booklog.services import books as books_service
from tests.factories import create_test_book
from tests.helpers import auth_headers


class TestSearchBooks:
    def test_substring_match_is_case_insensitive(self, db_session: Session):
        gatsby = create_test_book(db_session, "The Great Gatsby")
        ledger = create_test_book(db_session, "Gatsby's Ledger")
        create_test_book(db_session, "Dune")

        results = books_service.search_books(db_session, "gatsby")

        assert [b.id for b in results] == [gatsby, ledger]

    @pytest.mark.parametrize("q", ["", "   ", None])
    def test_blank_query_returns_empty(self, db_session: Session, q):
        create_test_book(db_session, "Dune")

        assert books_service.search_books(db_session, q) == []

    def test_query_is_trimmed(self, db_session: Session):
        dune = create_test_book(db_session, "Dune")

        assert [b.id for b in books_service.search_books(db_session, "  dune ")] == [dune]

    def test_wildcards_match_literally(self, db_session: Session):
        create_test_book(db_session, "Dune")
        percent = create_test_book(db_session, "100% Reading")

        assert books_service.search_books(db_session, "%") == [
            books_service.get_book(db_session, percent)
        ]
        assert books_service.search_books(db_session, "_une") == []

    def test_limit_applies(self, db_session: Session):
        for i in range(5):
            create_test_book(db_session, f"Volume {i}")

        assert len(books_service.search_books(db_session, "volume", limit=3)) == 3

    def test_default_limit_from_settings(self, db_session: Session, monkeypatch):
        monkeypatch.setenv("SEARCH_RESULT_LIMIT", "2")
        for i in range(4):
            create_test_book(db_session, f"Volume {i}")

        assert len(books_service.search_books(db_session, "volume")) == 2


class TestCreateBook:
    def test_blank_optional_fields_stored_as_absent(self, db_session: Session):
        book = books_service.create_book(
            db_session, CreateBookRequest(title="  Dune  ", author=" ", isbn="")
        )

        assert book.title == "Dune"
        assert book.author is None
        assert book.isbn is None

    def test_duplicate_isbn_conflicts(self, db_session: Session):
        create_test_book(db_session, "Dune", isbn="9780441013593")

        with pytest.raises(ConflictError) as exc_info:
            books_service.create_book(
                db_session, CreateBookRequest(title="Dune (reprint)", isbn="9780441013593")
            )

        assert exc_info.value.code == ApiErrorCode.E_BOOK_CONFLICT

    def test_books_without_isbn_never_conflict(self, db_session: Session):
        books_service.create_book(db_session, CreateBookRequest(title="Untitled"))
        books_service.create_book(db_session, CreateBookRequest(title="Untitled"))

        assert len(books_service.search_books(db_session, "untitled")) == 2


class TestBookRoutes:
    def test_search_returns_envelope(
        self, auth_client: TestClient, db_session: Session, test_user_id: UUID
    ):
        create_test_book(db_session, "The Great Gatsby", author="F. Scott Fitzgerald")

        response = auth_client.get(
            "/books/search", params={"q": "GREAT"}, headers=auth_headers(test_user_id)
        )

        assert response.status_code == 200
        (book,) = response.json()["data"]
        assert book["title"] == "The Great Gatsby"
        assert book["author"] == "F. Scott Fitzgerald"

    def test_search_without_query_returns_empty(
        self, auth_client: TestClient, test_user_id: UUID
    ):
        response = auth_client.get("/books/search", headers=auth_headers(test_user_id))

        assert response.status_code == 200
        assert response.json() == {"data": []}

    def test_create_book_returns_201(self, auth_client: TestClient, test_user_id: UUID):
        response = auth_client.post(
            "/books", json={"title": "Dune", "author": "Frank Herbert"}, headers=auth_headers(test_user_id)
        )

        assert response.status_code == 201
        assert response.json()["data"]["title"] == "Dune"

    def test_create_book_blank_title_rejected(self, auth_client: TestClient, test_user_id: UUID):
        response = auth_client.post(
            "/books", json={"title": "   "}, headers=auth_headers(test_user_id)
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Title is required."

    def test_create_book_conflict_returns_409(
        self, auth_client: TestClient, db_session: Session, test_user_id: UUID
    ):
        create_test_book(db_session, "Dune", isbn="123")

        response = auth_client.post(
            "/books", json={"title": "Dune", "isbn": "123"}, headers=auth_headers(test_user_id)
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "E_BOOK_CONFLICT"

    def test_get_missing_book_returns_404(self, auth_client: TestClient, test_user_id: UUID):
        response = auth_client.get("/books/424242", headers=auth_headers(test_user_id))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_BOOK_NOT_FOUND"
