"""Book log Pydantic schemas.

A rating of None means "no rating" and is a different state from 0.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from booklog.schemas.annotations import ChapterOut, NoteOut
from booklog.schemas.books import BookOut
from booklog.schemas.tags import TagOut

__all__ = [
    "BookLogOut",
    "LogBookRequest",
    "LogBookResult",
    "LogDetailOut",
    "UpdateLogRequest",
]

# =============================================================================
# Output Schemas
# =============================================================================


class BookLogOut(BaseModel):
    """Response schema for a log, with its catalog book."""

    id: int
    user_id: UUID
    book_id: int
    rating: int | None = None
    review_text: str | None = None
    read_status: str
    created_at: datetime
    updated_at: datetime
    book: BookOut

    model_config = ConfigDict(from_attributes=True)


class LogBookResult(BaseModel):
    """Result of logging a book.

    `warnings` lists secondary steps (initial note, initial chapter) that
    failed without failing the log itself.
    """

    log: BookLogOut
    created: bool
    message: str
    warnings: list[str] = Field(default_factory=list)


class LogDetailOut(BaseModel):
    """A log with everything attached to it."""

    log: BookLogOut
    notes: list[NoteOut]
    chapters: list[ChapterOut]
    tags: list[TagOut]


# =============================================================================
# Request Schemas
# =============================================================================


class LogBookRequest(BaseModel):
    """Request body for logging a book (create or update by (user, book))."""

    book_id: int = Field(..., description="Catalog book being logged")
    rating: int | None = Field(None, ge=0, le=10, description="0-10, or null for no rating")
    review_text: str | None = Field(None, description="Review; blank is stored as absent")
    note: str | None = Field(None, description="Optional initial note")
    chapter: str | None = Field(
        None, description="Optional initial chapter, also used as the initial note's label"
    )


class UpdateLogRequest(BaseModel):
    """Request body for editing a log.

    Only fields present in the body change. An explicit null rating clears it.
    """

    rating: int | None = Field(None, ge=0, le=10, description="0-10, or null to clear")
    review_text: str | None = Field(None, description="New review; blank clears it")
