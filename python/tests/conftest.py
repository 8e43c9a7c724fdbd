"""Pytest configuration and fixtures for Booklog tests.

Test isolation strategy:
- The test database comes from TEST_DATABASE_URL (default: SQLite in memory)
- Every test gets its own engine with a freshly created schema, dropped afterwards
- Route tests use a TestClient whose get_db dependency and user bootstrap are
  bound to that engine
- Auth tests mint JWTs signed by the test RSA key (see tests/support/test_verifier.py)
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path
from uuid import UUID

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

# Tests never touch the development database
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("BOOKLOG_ENV", "test")
os.environ.setdefault(
    "SUPABASE_JWKS_URL", "http://localhost:54321/auth/v1/.well-known/jwks.json"
)
os.environ.setdefault("SUPABASE_ISSUER", "test-issuer")
os.environ.setdefault("SUPABASE_AUDIENCES", "test-audience")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from booklog.app import create_app
from booklog.config import clear_settings_cache
from booklog.db.engine import create_db_engine
from booklog.db.models import Base
from booklog.db.session import create_session_factory
from tests.helpers import build_test_app, create_test_user_id


def get_test_database_url() -> str:
    """Get the test database URL from environment."""
    return os.environ["DATABASE_URL"]


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Drop cached settings so env changes made by a test don't leak."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create a database engine with a fresh schema for one test."""
    engine = create_db_engine(get_test_database_url())
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session bound to the test engine."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client without authentication.

    Suitable for public endpoints and basic functionality.
    """
    app = create_app(skip_auth_middleware=True)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def authenticated_app(session_factory: sessionmaker[Session]) -> FastAPI:
    return build_test_app(session_factory)


@pytest.fixture
def auth_client(authenticated_app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client with auth middleware.

    Use auth_headers() to generate valid tokens for requests.
    """
    with TestClient(authenticated_app) as client:
        yield client


@pytest.fixture
def test_user_id() -> UUID:
    """Generate a random UUID for a test user."""
    return create_test_user_id()
