"""Business logic services.

This module contains service-layer functions that implement business logic.
Services are called by route handlers and orchestrate database operations.
"""

from booklog.services.bootstrap import ensure_user
from booklog.services.books import create_book, get_book, search_books
from booklog.services.logs import get_log_detail, list_logs, log_book, update_log
from booklog.services.tags import attach_tag, detach_tag, normalize_tag_name

__all__ = [
    "ensure_user",
    "search_books",
    "create_book",
    "get_book",
    "log_book",
    "list_logs",
    "update_log",
    "get_log_detail",
    "normalize_tag_name",
    "attach_tag",
    "detach_tag",
]
