"""Book log routes.

Routes are transport-only: each calls exactly one service function.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from booklog.api.deps import get_db
from booklog.auth.middleware import Viewer, get_viewer
from booklog.responses import success_response
from booklog.schemas.logs import LogBookRequest, UpdateLogRequest
from booklog.services import logs as logs_service

router = APIRouter()


@router.get("/logs")
def list_logs(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    tag_id: Annotated[int | None, Query(description="Only logs carrying this tag")] = None,
) -> dict:
    """List the viewer's logs, newest first, each with its book."""
    result = logs_service.list_logs(db, viewer.user_id, tag_id=tag_id)
    return success_response([log.model_dump(mode="json") for log in result])


@router.put("/logs")
def log_book(
    request: LogBookRequest,
    response: Response,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Log a book: create the viewer's log for it, or update the existing one.

    Returns 201 when a log was created, 200 when an existing one was updated.
    Failures of the optional initial note/chapter are reported in `warnings`.

    Errors:
        E_BOOK_NOT_FOUND (404): Book doesn't exist.
        E_INVALID_REQUEST (400): Rating outside 0-10.
    """
    result = logs_service.log_book(db, viewer.user_id, request)
    response.status_code = 201 if result.created else 200
    return success_response(result.model_dump(mode="json"))


@router.get("/logs/{log_id}")
def get_log_detail(
    log_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a log with its notes, chapters and tags.

    Errors:
        E_LOG_NOT_FOUND (404): Log doesn't exist or is not the viewer's.
    """
    result = logs_service.get_log_detail(db, viewer.user_id, log_id)
    return success_response(result.model_dump(mode="json"))


@router.patch("/logs/{log_id}")
def update_log(
    log_id: int,
    request: UpdateLogRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Edit rating and/or review. Send `"rating": null` to clear the rating."""
    result = logs_service.update_log(db, viewer.user_id, log_id, request)
    return success_response(result.model_dump(mode="json"))
