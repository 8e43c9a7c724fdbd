#!/usr/bin/env python
"""Seed development database with catalog books.

Seeds the shared books catalog so catalog search has something to find
during local UI testing.

Constraints:
- Refuses to run in staging or prod (BOOKLOG_ENV check)
- Idempotent: books are matched by ISBN and skipped when present
- Never runs automatically (manual invocation only)

Usage:
    cd python && DATABASE_URL=... python ../scripts/seed_dev.py
"""

import os
import sys

SEED_BOOKS = [
    {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "isbn": "9780743273565",
    },
    {
        "title": "Gatsby's Ledger",
        "author": None,
        "isbn": None,
    },
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "isbn": "9780441172719",
    },
    {
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "isbn": "9780441478125",
    },
    {
        "title": "Middlemarch",
        "author": "George Eliot",
        "isbn": "9780141439549",
    },
]


def main():
    # 1. Environment check (hard fail in staging/prod)
    booklog_env = os.getenv("BOOKLOG_ENV", "local")
    if booklog_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in BOOKLOG_ENV={booklog_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from sqlalchemy import select

    from booklog.db.engine import create_db_engine
    from booklog.db.models import Book
    from booklog.db.session import create_session_factory

    session_factory = create_session_factory(create_db_engine(database_url))

    created = []
    existing = []
    with session_factory() as db:
        # 3. Idempotent seeding
        for entry in SEED_BOOKS:
            if entry["isbn"] is not None:
                match = Book.isbn == entry["isbn"]
            else:
                match = (Book.title == entry["title"]) & Book.isbn.is_(None)
            if db.scalar(select(Book.id).where(match)) is not None:
                existing.append(entry["title"])
                continue
            db.add(Book(**entry))
            created.append(entry["title"])
        db.commit()

    # 4. Report
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"BOOKLOG_ENV: {booklog_env}")
    print()
    for title in created:
        print(f"✓ Created: {title}")
    for title in existing:
        print(f"• Exists: {title}")


if __name__ == "__main__":
    main()
