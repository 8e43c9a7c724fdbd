"""SQLAlchemy ORM models for Booklog.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are the generic ones (Uuid, DateTime, Integer) so the same
models run against Postgres in production and SQLite in tests.

Ownership: every user-owned row carries user_id, and every service query
that reads or mutates those rows filters on it.
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class ReadStatus(str, PyEnum):
    """Reading state of a log.

    Only `read` is ever written today; the column exists so that progress
    states can be added without a schema change.
    """

    read = "read"


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """Mirror of an auth-provider identity.

    The id is the Supabase auth user ID (JWT sub claim). Rows are created
    lazily by the auth middleware on first authenticated request.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )


class Book(Base):
    """Catalog book, shared across all users."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str | None] = mapped_column(Text, nullable=True)
    isbn: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("isbn", name="uq_books_isbn"),)


class BookLog(Base):
    """A user's record of having read a book.

    At most one log exists per (user_id, book_id). A rating of NULL means
    "no rating" and is distinct from 0.
    """

    __tablename__ = "book_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False
    )
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    read_status: Mapped[str] = mapped_column(
        Text, nullable=False, default=ReadStatus.read.value, server_default=ReadStatus.read.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_book_logs_user_book"),
        CheckConstraint(
            "rating IS NULL OR (rating >= 0 AND rating <= 10)",
            name="ck_book_logs_rating_range",
        ),
        Index("ix_book_logs_user_created", "user_id", "created_at"),
    )

    book: Mapped["Book"] = relationship("Book", lazy="joined")


class LogNote(Base):
    """Freeform note attached to a log.

    `chapter` is a denormalized label: it is associated with a chapter marker
    only by equal string value, there is no foreign key.
    """

    __tablename__ = "log_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("book_logs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    chapter: Mapped[str | None] = mapped_column(Text, nullable=True)
    note_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )


class LogChapter(Base):
    """Chapter marker (progress checkpoint) attached to a log."""

    __tablename__ = "log_chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("book_logs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    chapter_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    chapter_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )


class Tag(Base):
    """Per-user label. Names are stored normalized (trimmed, lowercase)."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tags_user_name"),)


class LogTag(Base):
    """Join row between a log and a tag.

    Deleting a link never deletes the tag; tags with zero links are kept.
    """

    __tablename__ = "log_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("book_logs.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("log_id", "tag_id", name="uq_log_tags_log_tag"),)

    tag: Mapped["Tag"] = relationship("Tag", lazy="joined")
