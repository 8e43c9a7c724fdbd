"""Database module for Booklog.

Provides engine creation, session management and ORM models.
"""

from booklog.db.engine import create_db_engine, get_engine
from booklog.db.models import (
    Base,
    Book,
    BookLog,
    LogChapter,
    LogNote,
    LogTag,
    ReadStatus,
    Tag,
    User,
)
from booklog.db.session import create_session_factory, get_db

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "create_session_factory",
    "get_db",
    # Base
    "Base",
    # Enums
    "ReadStatus",
    # Models
    "User",
    "Book",
    "BookLog",
    "LogNote",
    "LogChapter",
    "Tag",
    "LogTag",
]
