"""Helpers for classifying IntegrityError raised by the database driver."""

from sqlalchemy.exc import IntegrityError

# SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def is_unique_violation(e: IntegrityError) -> bool:
    """Whether the error is a uniqueness violation (not FK/check/not-null).

    psycopg exposes the SQLSTATE as `sqlstate` (v3) or `pgcode` (v2);
    sqlite3 only offers the message text.
    """
    orig = e.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)

