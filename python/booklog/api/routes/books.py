"""Catalog routes.

Routes are transport-only: each calls exactly one service function.

IMPORTANT: /books/search must be registered BEFORE /books/{book_id}.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booklog.api.deps import get_db
from booklog.auth.middleware import Viewer, get_viewer
from booklog.responses import success_response
from booklog.schemas.books import CreateBookRequest
from booklog.services import books as books_service

router = APIRouter()


@router.get("/books/search")
def search_books(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    q: Annotated[str, Query(description="Title substring, case-insensitive")] = "",
) -> dict:
    """Search the catalog by title. A blank query returns an empty list."""
    result = books_service.search_books(db, q)
    return success_response([b.model_dump(mode="json") for b in result])


@router.post("/books", status_code=201)
def create_book(
    request: CreateBookRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Contribute a book to the shared catalog.

    Errors:
        E_BOOK_CONFLICT (409): A book with this ISBN already exists.
    """
    result = books_service.create_book(db, request)
    return success_response(result.model_dump(mode="json"))


@router.get("/books/{book_id}")
def get_book(
    book_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = books_service.get_book(db, book_id)
    return success_response(result.model_dump(mode="json"))
