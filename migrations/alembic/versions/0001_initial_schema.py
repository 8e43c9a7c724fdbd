"""Initial schema - catalog, logs, annotations, tags

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Key changes:
- Create users mirror table (id = Supabase auth user ID)
- Create books catalog table, ISBN unique when present
- Create book_logs with one log per (user, book) and rating 0..10 or NULL
- Create log_notes and log_chapters; a note's chapter is a plain label,
  no foreign key to log_chapters
- Create tags (unique per user + normalized name) and log_tags links
  (unique per log + tag)

Constraint names must match the ones the services recognize.
Column types are generic so the migration also runs on SQLite.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    # ==========================================================================
    # Step 1: Identity mirror and shared catalog
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("author", sa.Text(), nullable=True),
        sa.Column("isbn", sa.Text(), nullable=True),
        sa.Column("cover_image_url", sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("isbn", name="uq_books_isbn"),
    )

    # ==========================================================================
    # Step 2: Logs
    # ==========================================================================
    op.create_table(
        "book_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "book_id",
            sa.Integer(),
            sa.ForeignKey("books.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("review_text", sa.Text(), nullable=True),
        sa.Column("read_status", sa.Text(), server_default="read", nullable=False),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.UniqueConstraint("user_id", "book_id", name="uq_book_logs_user_book"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating >= 0 AND rating <= 10)",
            name="ck_book_logs_rating_range",
        ),
    )
    op.create_index("ix_book_logs_user_created", "book_logs", ["user_id", "created_at"])

    # ==========================================================================
    # Step 3: Notes and chapter markers
    # ==========================================================================
    op.create_table(
        "log_notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "log_id",
            sa.Integer(),
            sa.ForeignKey("book_logs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chapter", sa.Text(), nullable=True),
        sa.Column("note_text", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_log_notes_log_id", "log_notes", ["log_id"])

    op.create_table(
        "log_chapters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "log_id",
            sa.Integer(),
            sa.ForeignKey("book_logs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chapter_title", sa.Text(), nullable=True),
        sa.Column("chapter_number", sa.Integer(), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_log_chapters_log_id", "log_chapters", ["log_id"])

    # ==========================================================================
    # Step 4: Tags and links
    # ==========================================================================
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )

    op.create_table(
        "log_tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "log_id",
            sa.Integer(),
            sa.ForeignKey("book_logs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "tag_id",
            sa.Integer(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
        sa.UniqueConstraint("log_id", "tag_id", name="uq_log_tags_log_tag"),
    )
    op.create_index("ix_log_tags_tag_id", "log_tags", ["tag_id"])


def downgrade() -> None:
    op.drop_index("ix_log_tags_tag_id", table_name="log_tags")
    op.drop_table("log_tags")
    op.drop_table("tags")
    op.drop_index("ix_log_chapters_log_id", table_name="log_chapters")
    op.drop_table("log_chapters")
    op.drop_index("ix_log_notes_log_id", table_name="log_notes")
    op.drop_table("log_notes")
    op.drop_index("ix_book_logs_user_created", table_name="book_logs")
    op.drop_table("book_logs")
    op.drop_table("books")
    op.drop_table("users")
