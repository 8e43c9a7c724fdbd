"""Note and chapter marker routes.

Routes are transport-only: each calls exactly one service function.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from booklog.api.deps import get_db
from booklog.auth.middleware import Viewer, get_viewer
from booklog.responses import success_response
from booklog.schemas.annotations import (
    CreateChapterRequest,
    CreateNoteRequest,
    UpdateChapterRequest,
    UpdateNoteRequest,
)
from booklog.services import annotations as annotations_service

router = APIRouter()


# =============================================================================
# Notes
# =============================================================================


@router.get("/logs/{log_id}/notes")
def list_notes(
    log_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = annotations_service.list_notes(db, viewer.user_id, log_id)
    return success_response([n.model_dump(mode="json") for n in result])


@router.post("/logs/{log_id}/notes", status_code=201)
def create_note(
    log_id: int,
    request: CreateNoteRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Add a note. `chapter` is a free label; it is not checked against the log's chapters."""
    result = annotations_service.create_note(db, viewer.user_id, log_id, request)
    return success_response(result.model_dump(mode="json"))


@router.patch("/notes/{note_id}")
def update_note(
    note_id: int,
    request: UpdateNoteRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = annotations_service.update_note(db, viewer.user_id, note_id, request)
    return success_response(result.model_dump(mode="json"))


# =============================================================================
# Chapters
# =============================================================================


@router.get("/logs/{log_id}/chapters")
def list_chapters(
    log_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = annotations_service.list_chapters(db, viewer.user_id, log_id)
    return success_response([c.model_dump(mode="json") for c in result])


@router.post("/logs/{log_id}/chapters", status_code=201)
def create_chapter(
    log_id: int,
    request: CreateChapterRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = annotations_service.create_chapter(db, viewer.user_id, log_id, request)
    return success_response(result.model_dump(mode="json"))


@router.patch("/chapters/{chapter_id}")
def update_chapter(
    chapter_id: int,
    request: UpdateChapterRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Edit a chapter marker.

    Renaming also relabels the log's notes that carried the old title. If
    that second step fails the rename still stands and `warning` is set.
    """
    result = annotations_service.update_chapter(db, viewer.user_id, chapter_id, request)
    return success_response(result.model_dump(mode="json"))
