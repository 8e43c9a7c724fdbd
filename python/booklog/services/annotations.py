"""Note and chapter marker service layer.

Notes and chapter markers are independent append-only writes against a
log. A note's `chapter` is a plain string; it is not checked against the
log's chapter markers and the two are related only by equal value.

Renaming a marker therefore relabels notes in a second write: notes of
the same log whose `chapter` equals the previous title (NULL matches
NULL) take the new title. The marker commit does not wait on the relabel.
If the relabel fails the marker stays renamed and the caller gets a
warning.
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booklog.db.models import LogChapter, LogNote
from booklog.errors import ApiErrorCode, NotFoundError
from booklog.logging import get_logger
from booklog.schemas.annotations import (
    ChapterOut,
    ChapterUpdateResult,
    CreateChapterRequest,
    CreateNoteRequest,
    NoteOut,
    UpdateChapterRequest,
    UpdateNoteRequest,
)
from booklog.services.logs import get_log_for_owner_or_404

logger = get_logger(__name__)

CHAPTER_UPDATED = "Chapter updated."
CHAPTER_AND_NOTES_UPDATED = "Chapter and linked notes updated."
NOTE_PROPAGATION_FAILED = "Chapter updated, but failed to update linked notes' context."


# =============================================================================
# Notes
# =============================================================================


def create_note(db: Session, viewer_id: UUID, log_id: int, req: CreateNoteRequest) -> NoteOut:
    log = get_log_for_owner_or_404(db, viewer_id, log_id)
    note = LogNote(log_id=log.id, user_id=viewer_id, chapter=req.chapter, note_text=req.note_text)
    db.add(note)
    db.commit()
    return NoteOut.model_validate(note)


def update_note(db: Session, viewer_id: UUID, note_id: int, req: UpdateNoteRequest) -> NoteOut:
    """Edit a note in place, scoped by (id, user_id)."""
    note = db.scalar(select(LogNote).where(LogNote.id == note_id, LogNote.user_id == viewer_id))
    if note is None:
        raise NotFoundError(ApiErrorCode.E_NOTE_NOT_FOUND, "Note not found")

    fields = req.model_fields_set
    if "note_text" in fields:
        note.note_text = req.note_text
    if "chapter" in fields:
        note.chapter = req.chapter
    db.commit()
    return NoteOut.model_validate(note)


def list_notes(db: Session, viewer_id: UUID, log_id: int) -> list[NoteOut]:
    get_log_for_owner_or_404(db, viewer_id, log_id)
    notes = db.scalars(
        select(LogNote)
        .where(LogNote.log_id == log_id, LogNote.user_id == viewer_id)
        .order_by(LogNote.created_at, LogNote.id)
    ).all()
    return [NoteOut.model_validate(n) for n in notes]


# =============================================================================
# Chapters
# =============================================================================


def create_chapter(
    db: Session, viewer_id: UUID, log_id: int, req: CreateChapterRequest
) -> ChapterOut:
    log = get_log_for_owner_or_404(db, viewer_id, log_id)
    chapter = LogChapter(
        log_id=log.id,
        user_id=viewer_id,
        chapter_title=req.chapter_title,
        chapter_number=req.chapter_number,
        finished_at=req.finished_at,
    )
    db.add(chapter)
    db.commit()
    return ChapterOut.model_validate(chapter)


def list_chapters(db: Session, viewer_id: UUID, log_id: int) -> list[ChapterOut]:
    get_log_for_owner_or_404(db, viewer_id, log_id)
    chapters = db.scalars(
        select(LogChapter)
        .where(LogChapter.log_id == log_id, LogChapter.user_id == viewer_id)
        .order_by(LogChapter.created_at, LogChapter.id)
    ).all()
    return [ChapterOut.model_validate(c) for c in chapters]


def relabel_notes(
    db: Session,
    viewer_id: UUID,
    log_id: int,
    previous_title: str | None,
    new_title: str | None,
) -> int:
    """Move notes labeled `previous_title` to `new_title`. Returns the count."""
    if previous_title is None:
        matches = LogNote.chapter.is_(None)
    else:
        matches = LogNote.chapter == previous_title

    result = db.execute(
        update(LogNote)
        .where(LogNote.log_id == log_id, LogNote.user_id == viewer_id, matches)
        .values(chapter=new_title)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount


def update_chapter(
    db: Session, viewer_id: UUID, chapter_id: int, req: UpdateChapterRequest
) -> ChapterUpdateResult:
    """Edit a chapter marker in place, scoped by (id, user_id).

    When the title is part of the update, notes carrying the previous title
    are relabeled after the marker is committed.
    """
    chapter = db.scalar(
        select(LogChapter).where(LogChapter.id == chapter_id, LogChapter.user_id == viewer_id)
    )
    if chapter is None:
        raise NotFoundError(ApiErrorCode.E_CHAPTER_NOT_FOUND, "Chapter not found")

    fields = req.model_fields_set
    previous_title = chapter.chapter_title
    renamed = "chapter_title" in fields

    if renamed:
        chapter.chapter_title = req.chapter_title
    if "chapter_number" in fields:
        chapter.chapter_number = req.chapter_number
    if "finished_at" in fields:
        chapter.finished_at = req.finished_at
    db.commit()

    chapter_out = ChapterOut.model_validate(chapter)
    if not renamed:
        return ChapterUpdateResult(chapter=chapter_out, message=CHAPTER_UPDATED)

    try:
        notes_updated = relabel_notes(
            db, viewer_id, chapter_out.log_id, previous_title, chapter_out.chapter_title
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "chapter_note_propagation_failed",
            chapter_id=chapter_id,
            log_id=chapter_out.log_id,
            error=str(e),
        )
        return ChapterUpdateResult(
            chapter=chapter_out,
            notes_updated=0,
            message=CHAPTER_UPDATED,
            warning=NOTE_PROPAGATION_FAILED,
        )

    logger.info(
        "chapter_renamed",
        chapter_id=chapter_id,
        log_id=chapter_out.log_id,
        notes_updated=notes_updated,
    )
    return ChapterUpdateResult(
        chapter=chapter_out,
        notes_updated=notes_updated,
        message=CHAPTER_AND_NOTES_UPDATED,
    )
