"""Catalog service layer.

The catalog is shared across users: books have no owner and any
authenticated user may search it or contribute to it.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booklog.config import get_settings
from booklog.db.integrity import is_unique_violation
from booklog.db.models import Book
from booklog.errors import ApiErrorCode, ConflictError, NotFoundError
from booklog.logging import get_logger
from booklog.schemas.books import BookOut, CreateBookRequest

logger = get_logger(__name__)


def get_book_or_404(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None:
        raise NotFoundError(ApiErrorCode.E_BOOK_NOT_FOUND, "Book not found")
    return book


def search_books(db: Session, q: str | None, limit: int | None = None) -> list[BookOut]:
    """Case-insensitive substring search over titles.

    A blank query returns no results without touching the database. LIKE
    wildcards in the query match literally. Results are ordered by id so the
    same catalog always answers the same query the same way.
    """
    term = (q or "").strip()
    if not term:
        return []

    if limit is None:
        limit = get_settings().search_result_limit

    books = db.scalars(
        select(Book)
        .where(Book.title.icontains(term, autoescape=True))
        .order_by(Book.id)
        .limit(limit)
    ).all()
    return [BookOut.model_validate(b) for b in books]


def create_book(db: Session, req: CreateBookRequest) -> BookOut:
    """Add a book to the shared catalog.

    Raises:
        ConflictError(E_BOOK_CONFLICT): A book with the same ISBN exists.
    """
    book = Book(
        title=req.title,
        author=req.author,
        isbn=req.isbn,
        cover_image_url=req.cover_image_url,
    )
    try:
        db.add(book)
        db.flush()
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e):
            raise ConflictError(
                ApiErrorCode.E_BOOK_CONFLICT,
                "A book with this identifier might already exist.",
            ) from e
        raise

    logger.info("book_created", book_id=book.id)
    return BookOut.model_validate(book)


def get_book(db: Session, book_id: int) -> BookOut:
    return BookOut.model_validate(get_book_or_404(db, book_id))
