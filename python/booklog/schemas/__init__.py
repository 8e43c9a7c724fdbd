"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from booklog.schemas.annotations import (
    ChapterOut,
    ChapterUpdateResult,
    CreateChapterRequest,
    CreateNoteRequest,
    NoteOut,
    UpdateChapterRequest,
    UpdateNoteRequest,
)
from booklog.schemas.auth import (
    PasswordResetRequest,
    SessionOut,
    SignInRequest,
    SignUpOut,
    SignUpRequest,
    UpdatePasswordRequest,
)
from booklog.schemas.books import BookOut, CreateBookRequest
from booklog.schemas.logs import (
    BookLogOut,
    LogBookRequest,
    LogBookResult,
    LogDetailOut,
    UpdateLogRequest,
)
from booklog.schemas.tags import AttachTagRequest, AttachTagResult, TagOut

__all__ = [
    # Annotations
    "NoteOut",
    "ChapterOut",
    "ChapterUpdateResult",
    "CreateNoteRequest",
    "UpdateNoteRequest",
    "CreateChapterRequest",
    "UpdateChapterRequest",
    # Auth
    "SignInRequest",
    "SignUpRequest",
    "PasswordResetRequest",
    "UpdatePasswordRequest",
    "SessionOut",
    "SignUpOut",
    # Books
    "BookOut",
    "CreateBookRequest",
    # Logs
    "BookLogOut",
    "LogBookRequest",
    "LogBookResult",
    "LogDetailOut",
    "UpdateLogRequest",
    # Tags
    "TagOut",
    "AttachTagRequest",
    "AttachTagResult",
]
