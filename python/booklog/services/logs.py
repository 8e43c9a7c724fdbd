"""Book log service layer.

Implements the log upsert, tag-filtered listing, in-place edits and the
detail read. Every query is scoped by the viewer's user_id; a log owned by
someone else is reported as not found.

Log upsert is check-then-insert-or-update, not one atomic statement. The
race between two first-time logs of the same book is closed by the
uq_book_logs_user_book constraint: the loser rolls back, re-reads the
winner's row and updates it instead.

Initial note and initial chapter are separate writes after the log is
committed. Their failures are logged and returned as warnings; the log
itself stays saved.
"""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from booklog.db.integrity import is_unique_violation
from booklog.db.models import BookLog, LogChapter, LogNote, LogTag, ReadStatus, Tag, utc_now
from booklog.errors import ApiErrorCode, NotFoundError
from booklog.logging import get_logger
from booklog.schemas.annotations import ChapterOut, NoteOut
from booklog.schemas.logs import (
    BookLogOut,
    LogBookRequest,
    LogBookResult,
    LogDetailOut,
    UpdateLogRequest,
)
from booklog.schemas.tags import TagOut
from booklog.services.books import get_book_or_404

logger = get_logger(__name__)

INITIAL_NOTE_FAILED = "Book logged, but the initial note could not be saved."
INITIAL_CHAPTER_FAILED = "Book logged, but the initial chapter could not be saved."


# =============================================================================
# Shared Helpers
# =============================================================================


def clean_text(value: str | None) -> str | None:
    """Trim free text; blank becomes None."""
    if value is None:
        return None
    return value.strip() or None


def get_log_for_owner_or_404(db: Session, viewer_id: UUID, log_id: int) -> BookLog:
    """Load a log owned by the viewer.

    Raises:
        NotFoundError(E_LOG_NOT_FOUND): Log doesn't exist or belongs to someone else.
    """
    log = db.scalar(select(BookLog).where(BookLog.id == log_id, BookLog.user_id == viewer_id))
    if log is None:
        raise NotFoundError(ApiErrorCode.E_LOG_NOT_FOUND, "Log not found")
    return log


def _find_log(db: Session, viewer_id: UUID, book_id: int) -> BookLog | None:
    return db.scalar(
        select(BookLog).where(BookLog.user_id == viewer_id, BookLog.book_id == book_id)
    )


# =============================================================================
# Log Upsert
# =============================================================================


def log_book(db: Session, viewer_id: UUID, req: LogBookRequest) -> LogBookResult:
    """Create or update the viewer's log of a book.

    At most one log exists per (user, book): logging the same book again
    updates rating, review and updated_at in place.

    Raises:
        NotFoundError(E_BOOK_NOT_FOUND): Book doesn't exist.
    """
    book = get_book_or_404(db, req.book_id)
    book_id = book.id
    title = book.title
    review_text = clean_text(req.review_text)
    now = utc_now()

    created = False
    log = _find_log(db, viewer_id, book_id)

    if log is None:
        log = BookLog(
            user_id=viewer_id,
            book_id=book_id,
            rating=req.rating,
            review_text=review_text,
            read_status=ReadStatus.read.value,
            created_at=now,
            updated_at=now,
        )
        try:
            db.add(log)
            db.flush()
            db.commit()
            created = True
        except IntegrityError as e:
            db.rollback()
            if not is_unique_violation(e):
                raise
            log = _find_log(db, viewer_id, book_id)
            if log is None:
                logger.error("log_upsert_race_unresolved", book_id=book_id)
                raise RuntimeError(f"Failed to resolve log for book {book_id}") from None
            logger.info("log_upsert_race_recovered", log_id=log.id, book_id=book_id)

    if not created:
        log.rating = req.rating
        log.review_text = review_text
        log.updated_at = now
        db.commit()

    log_id = log.id
    logger.info("book_logged", log_id=log_id, book_id=book_id, created=created)

    warnings: list[str] = []
    note_text = clean_text(req.note)
    chapter = clean_text(req.chapter)

    if note_text:
        try:
            db.add(LogNote(log_id=log_id, user_id=viewer_id, chapter=chapter, note_text=note_text))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("initial_note_failed", log_id=log_id, error=str(e))
            warnings.append(INITIAL_NOTE_FAILED)

    if chapter:
        try:
            db.add(LogChapter(log_id=log_id, user_id=viewer_id, chapter_title=chapter))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("initial_chapter_failed", log_id=log_id, error=str(e))
            warnings.append(INITIAL_CHAPTER_FAILED)

    log = get_log_for_owner_or_404(db, viewer_id, log_id)
    return LogBookResult(
        log=BookLogOut.model_validate(log),
        created=created,
        message=f"Successfully logged '{title}'!",
        warnings=warnings,
    )


# =============================================================================
# Listing, Edit, Detail
# =============================================================================


def list_logs(db: Session, viewer_id: UUID, tag_id: int | None = None) -> list[BookLogOut]:
    """List the viewer's logs, newest first.

    With tag_id, only logs linked to that tag are returned. The link is
    outer-joined, so rows without a matching link come back with a null
    link id and are dropped here.
    """
    order = (BookLog.created_at.desc(), BookLog.id.desc())

    if tag_id is None:
        logs = db.scalars(
            select(BookLog).where(BookLog.user_id == viewer_id).order_by(*order)
        ).all()
        return [BookLogOut.model_validate(log) for log in logs]

    rows = db.execute(
        select(BookLog, LogTag.id)
        .outerjoin(
            LogTag,
            and_(
                LogTag.log_id == BookLog.id,
                LogTag.tag_id == tag_id,
                LogTag.user_id == viewer_id,
            ),
        )
        .where(BookLog.user_id == viewer_id)
        .order_by(*order)
    ).all()
    return [BookLogOut.model_validate(log) for log, link_id in rows if link_id is not None]


def update_log(db: Session, viewer_id: UUID, log_id: int, req: UpdateLogRequest) -> BookLogOut:
    """Edit rating and/or review in place. Only fields present in the request change."""
    log = get_log_for_owner_or_404(db, viewer_id, log_id)
    fields = req.model_fields_set

    if "rating" in fields:
        log.rating = req.rating
    if "review_text" in fields:
        log.review_text = clean_text(req.review_text)
    log.updated_at = utc_now()
    db.commit()

    logger.info("log_updated", log_id=log_id, fields=sorted(fields))
    return BookLogOut.model_validate(log)


def get_log_detail(db: Session, viewer_id: UUID, log_id: int) -> LogDetailOut:
    """A log with its notes and chapters (oldest first) and tags (alphabetical)."""
    log = get_log_for_owner_or_404(db, viewer_id, log_id)

    notes = db.scalars(
        select(LogNote)
        .where(LogNote.log_id == log_id, LogNote.user_id == viewer_id)
        .order_by(LogNote.created_at, LogNote.id)
    ).all()
    chapters = db.scalars(
        select(LogChapter)
        .where(LogChapter.log_id == log_id, LogChapter.user_id == viewer_id)
        .order_by(LogChapter.created_at, LogChapter.id)
    ).all()
    tags = db.scalars(
        select(Tag)
        .join(LogTag, LogTag.tag_id == Tag.id)
        .where(LogTag.log_id == log_id, LogTag.user_id == viewer_id)
        .order_by(Tag.name)
    ).all()

    return LogDetailOut(
        log=BookLogOut.model_validate(log),
        notes=[NoteOut.model_validate(n) for n in notes],
        chapters=[ChapterOut.model_validate(c) for c in chapters],
        tags=[TagOut.model_validate(t) for t in tags],
    )
