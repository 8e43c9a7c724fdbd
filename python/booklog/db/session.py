"""Database sessions.

Services own their commits: a session handed out here is never committed
implicitly. Sessions don't expire loaded rows on commit, so response
schemas can be built from ORM objects after the write.
"""

from collections.abc import Generator

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from booklog.db.engine import get_engine


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Create a session factory bound to `engine` (the default engine if None)."""
    return sessionmaker(
        bind=engine if engine is not None else get_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


# Created on first use so importing this module never needs DATABASE_URL
_session_factory: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory()
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session, closed afterwards."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
