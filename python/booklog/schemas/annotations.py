"""Note and chapter marker Pydantic schemas.

A note's `chapter` is a plain label. It relates to a chapter marker only
when the two strings are equal.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "ChapterOut",
    "ChapterUpdateResult",
    "CreateChapterRequest",
    "CreateNoteRequest",
    "NoteOut",
    "UpdateChapterRequest",
    "UpdateNoteRequest",
]


def _require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Note text is required.")
    return v


def _optional_label(v: str | None) -> str | None:
    if v is None:
        return None
    return v.strip() or None


# =============================================================================
# Output Schemas
# =============================================================================


class NoteOut(BaseModel):
    """Response schema for a note."""

    id: int
    log_id: int
    user_id: UUID
    chapter: str | None = None
    note_text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChapterOut(BaseModel):
    """Response schema for a chapter marker."""

    id: int
    log_id: int
    user_id: UUID
    chapter_title: str | None = None
    chapter_number: int | None = None
    finished_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChapterUpdateResult(BaseModel):
    """Result of updating a chapter marker.

    When the title changed, `notes_updated` counts the relabeled notes. A
    non-null `warning` means the marker was saved but relabeling failed.
    """

    chapter: ChapterOut
    notes_updated: int = 0
    message: str
    warning: str | None = None


# =============================================================================
# Request Schemas
# =============================================================================


class CreateNoteRequest(BaseModel):
    """Request body for adding a note to a log."""

    note_text: str = Field(..., description="Note text (required)")
    chapter: str | None = Field(None, description="Chapter label; null for a general note")

    @field_validator("note_text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("chapter")
    @classmethod
    def blank_chapter_to_none(cls, v: str | None) -> str | None:
        return _optional_label(v)


class UpdateNoteRequest(BaseModel):
    """Request body for editing a note. Only fields present change."""

    note_text: str | None = Field(None, description="New note text")
    chapter: str | None = Field(None, description="New chapter label; null for general")

    @field_validator("note_text")
    @classmethod
    def text_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("Note text is required.")
        return _require_text(v)

    @field_validator("chapter")
    @classmethod
    def blank_chapter_to_none(cls, v: str | None) -> str | None:
        return _optional_label(v)


class CreateChapterRequest(BaseModel):
    """Request body for adding a chapter marker to a log."""

    chapter_title: str = Field(..., description="Chapter title")
    chapter_number: int | None = Field(None, ge=0, description="Optional chapter number")
    finished_at: datetime | None = Field(None, description="When the chapter was finished")

    @field_validator("chapter_title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Chapter title is required.")
        return v


class UpdateChapterRequest(BaseModel):
    """Request body for editing a chapter marker.

    Sending `chapter_title` renames the marker and relabels the notes that
    carried the previous title. A blank title is stored as absent.
    """

    chapter_title: str | None = Field(None, description="New chapter title")
    chapter_number: int | None = Field(None, ge=0, description="New chapter number")
    finished_at: datetime | None = Field(None, description="When the chapter was finished")

    @field_validator("chapter_title")
    @classmethod
    def blank_title_to_none(cls, v: str | None) -> str | None:
        return _optional_label(v)
