"""User bootstrap service.

Provides race-safe creation of the users mirror row on first authenticated request.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booklog.db.integrity import is_unique_violation
from booklog.db.models import User
from booklog.logging import get_logger

logger = get_logger(__name__)


def ensure_user(db: Session, user_id: UUID, email: str | None = None) -> User:
    """Ensure the mirror row for an auth identity exists and carries its email.

    Race-safe and idempotent: concurrent first requests for the same user
    converge on a single row.

    Args:
        db: Database session.
        user_id: The user's ID (from JWT sub claim).
        email: The user's email (from JWT email claim), if present.

    Returns:
        The User row.
    """
    user = db.scalar(select(User).where(User.id == user_id))

    if user is None:
        try:
            user = User(id=user_id, email=email)
            db.add(user)
            db.flush()
            db.commit()
            logger.info("user_created", user_id=str(user_id))
            return user
        except IntegrityError as e:
            # Lost race: another request created it
            db.rollback()
            if not is_unique_violation(e):
                raise
            user = db.scalar(select(User).where(User.id == user_id))
            if user is None:
                logger.error("user_bootstrap_race_unresolved", user_id=str(user_id))
                raise RuntimeError(f"Failed to bootstrap user {user_id}") from None

    if email and user.email != email:
        user.email = email
        db.commit()

    return user


def create_bootstrap_callback(session_factory):
    """Create the auth middleware callback.

    Each call opens its own session so bootstrap never shares state with the
    request's session.
    """

    def bootstrap(user_id: UUID, email: str | None) -> None:
        db = session_factory()
        try:
            ensure_user(db, user_id, email)
        finally:
            db.close()

    return bootstrap
