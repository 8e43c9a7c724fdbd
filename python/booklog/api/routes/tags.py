"""Tag routes.

Routes are transport-only: each calls exactly one service function.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from booklog.api.deps import get_db
from booklog.auth.middleware import Viewer, get_viewer
from booklog.responses import success_response
from booklog.schemas.tags import AttachTagRequest
from booklog.services import tags as tags_service

router = APIRouter()


@router.get("/tags")
def list_user_tags(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """All of the viewer's tags, alphabetical (the log list's filter options)."""
    result = tags_service.list_user_tags(db, viewer.user_id)
    return success_response([t.model_dump(mode="json") for t in result])


@router.get("/logs/{log_id}/tags")
def list_log_tags(
    log_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = tags_service.list_log_tags(db, viewer.user_id, log_id)
    return success_response([t.model_dump(mode="json") for t in result])


@router.post("/logs/{log_id}/tags")
def attach_tag(
    log_id: int,
    request: AttachTagRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Attach a tag by name, creating the tag if the viewer has none by that name.

    Attaching a tag that is already attached succeeds without a second link.

    Errors:
        E_TAG_NAME_INVALID (400): Name is blank.
        E_LOG_NOT_FOUND (404): Log doesn't exist or is not the viewer's.
    """
    result = tags_service.attach_tag(db, viewer.user_id, log_id, request)
    return success_response(result.model_dump(mode="json"))


@router.delete("/logs/{log_id}/tags/{tag_id}", status_code=204)
def detach_tag(
    log_id: int,
    tag_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Remove a tag from a log. The tag itself is kept. Returns 204 even if not attached."""
    tags_service.detach_tag(db, viewer.user_id, log_id, tag_id)
    return Response(status_code=204)
