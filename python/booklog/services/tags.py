"""Tag service layer.

Tags are per-user labels stored under a normalized name (trimmed,
lowercase), unique per (user_id, name). Attaching is find-or-create on the
tag followed by an insert of the (log, tag) link. Both steps tolerate
losing a race to a concurrent attach: a duplicate tag insert re-reads the
existing tag, and a duplicate link insert is treated as already attached.

Detaching deletes only the link. Tags left with no links are kept.
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booklog.db.integrity import is_unique_violation
from booklog.db.models import LogTag, Tag
from booklog.errors import ApiErrorCode, InvalidRequestError
from booklog.logging import get_logger
from booklog.schemas.tags import AttachTagRequest, AttachTagResult, TagOut
from booklog.services.logs import get_log_for_owner_or_404

logger = get_logger(__name__)


def normalize_tag_name(name: str) -> str:
    """Trim and lowercase a tag name.

    Raises:
        InvalidRequestError(E_TAG_NAME_INVALID): Name is empty after trimming.
    """
    normalized = name.strip().lower()
    if not normalized:
        raise InvalidRequestError(ApiErrorCode.E_TAG_NAME_INVALID, "Tag name cannot be empty.")
    return normalized


def _find_tag(db: Session, viewer_id: UUID, name: str) -> Tag | None:
    return db.scalar(select(Tag).where(Tag.user_id == viewer_id, Tag.name == name))


def find_or_create_tag(db: Session, viewer_id: UUID, name: str) -> Tag:
    """Resolve the viewer's tag with this (already normalized) name, creating it if absent."""
    tag = _find_tag(db, viewer_id, name)
    if tag is not None:
        return tag

    try:
        tag = Tag(user_id=viewer_id, name=name)
        db.add(tag)
        db.flush()
        db.commit()
        logger.info("tag_created", tag_id=tag.id)
        return tag
    except IntegrityError as e:
        # Lost race: another request created the same tag
        db.rollback()
        if not is_unique_violation(e):
            raise

    tag = _find_tag(db, viewer_id, name)
    if tag is None:
        logger.error("tag_race_unresolved", name=name)
        raise RuntimeError(f"Failed to resolve tag {name!r}") from None
    return tag


def list_log_tags(db: Session, viewer_id: UUID, log_id: int) -> list[TagOut]:
    """Tags attached to a log, alphabetical."""
    get_log_for_owner_or_404(db, viewer_id, log_id)
    tags = db.scalars(
        select(Tag)
        .join(LogTag, LogTag.tag_id == Tag.id)
        .where(LogTag.log_id == log_id, LogTag.user_id == viewer_id)
        .order_by(Tag.name)
    ).all()
    return [TagOut.model_validate(t) for t in tags]


def list_user_tags(db: Session, viewer_id: UUID) -> list[TagOut]:
    """All of the viewer's tags, alphabetical, including ones with no links."""
    tags = db.scalars(select(Tag).where(Tag.user_id == viewer_id).order_by(Tag.name)).all()
    return [TagOut.model_validate(t) for t in tags]


def attach_tag(
    db: Session, viewer_id: UUID, log_id: int, req: AttachTagRequest
) -> AttachTagResult:
    """Attach a tag by name to one of the viewer's logs. Idempotent."""
    name = normalize_tag_name(req.name)
    log = get_log_for_owner_or_404(db, viewer_id, log_id)
    log_id = log.id

    tag = find_or_create_tag(db, viewer_id, name)
    tag_out = TagOut.model_validate(tag)

    try:
        db.add(LogTag(log_id=log_id, tag_id=tag_out.id, user_id=viewer_id))
        db.flush()
        db.commit()
        logger.info("tag_attached", log_id=log_id, tag_id=tag_out.id)
    except IntegrityError as e:
        db.rollback()
        if not is_unique_violation(e):
            raise
        logger.info("tag_already_attached", log_id=log_id, tag_id=tag_out.id)

    return AttachTagResult(
        tag=tag_out,
        tags=list_log_tags(db, viewer_id, log_id),
        message=f'Tag "{name}" added.',
    )


def detach_tag(db: Session, viewer_id: UUID, log_id: int, tag_id: int) -> None:
    """Remove the (log, tag) link. Never deletes the tag. Idempotent."""
    get_log_for_owner_or_404(db, viewer_id, log_id)
    db.execute(
        delete(LogTag).where(
            LogTag.log_id == log_id,
            LogTag.tag_id == tag_id,
            LogTag.user_id == viewer_id,
        )
    )
    db.commit()
    logger.info("tag_detached", log_id=log_id, tag_id=tag_id)
