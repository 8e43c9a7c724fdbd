"""View state for the dashboard and the log detail view.

Each view is an explicit state object scoped to its lifetime. Nothing is
shared through module globals: closing a view resets everything it held,
and responses that arrive for a view that has since been closed or pointed
at a different log are dropped.

Failures never escape as exceptions. They land in the view's
FlashMessages (or redirect_to, for a missing session) and the operation
returns.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from booklog.client.api import BooklogClient, ClientError
from booklog.client.messages import FlashMessages
from booklog.client.search import DEFAULT_DEBOUNCE_S, CatalogSearch
from booklog.logging import get_logger

logger = get_logger(__name__)

SIGN_IN_PATH = "/auth/signin"

LOGS_FAILED = "Could not fetch your logged books."
TAG_OPTIONS_FAILED = "Could not load tag filter options."
SESSION_FAILED = "Could not verify your session."
SELECT_BOOK_FIRST = "Please select a book to log."
LOG_FAILED = "Could not save your log."
DETAIL_FAILED = "Could not load log details (notes/chapters/tags)."
LOG_UPDATED = "Log updated successfully!"
LOG_UPDATE_FAILED = "Failed to update log."
NOTE_FAILED = "Failed to save note."
CHAPTER_FAILED = "Failed to add new chapter."
CHAPTER_UPDATE_FAILED = "Failed to update chapter."
TAG_ADD_FAILED = "Failed to add tag."
TAG_REMOVE_FAILED = "Failed to remove tag."


@dataclass
class LogForm:
    """The "log a book" form. A rating of None means no rating."""

    book: dict | None = None
    rating: int | None = None
    review_text: str = ""
    note: str = ""
    chapter: str = ""


class LogDetailView:
    """Detail state for one log: notes, chapters and tags.

    Every operation captures the view's generation before awaiting and
    discards its result if close() or open() ran in between.
    """

    def __init__(
        self,
        client: BooklogClient,
        on_log_updated: Callable[[dict], None] | None = None,
        on_tags_changed: Callable[[], Any] | None = None,
    ):
        self._client = client
        self._on_log_updated = on_log_updated
        self._on_tags_changed = on_tags_changed
        self._generation = 0
        self.messages = FlashMessages()
        self._reset()

    def _reset(self) -> None:
        self.log: dict | None = None
        self.notes: list[dict] = []
        self.chapters: list[dict] = []
        self.tags: list[dict] = []
        self.loading = False
        self.messages.clear()

    @property
    def is_open(self) -> bool:
        return self.log is not None

    @property
    def log_id(self) -> int | None:
        return self.log["id"] if self.log else None

    def _stale(self, generation: int) -> bool:
        return generation != self._generation

    async def open(self, log: dict) -> None:
        """Point the view at `log` and load its details. Resets prior state first."""
        self.close()
        self.log = dict(log)
        await self.load()

    def close(self) -> None:
        self._generation += 1
        self._reset()

    async def load(self) -> None:
        if self.log is None:
            return
        generation = self._generation
        self.loading = True
        try:
            detail = await self._client.get_log_detail(self.log["id"])
        except ClientError as e:
            if not self._stale(generation):
                logger.warning("log_detail_failed", log_id=self.log_id, code=e.code)
                self.messages.show_error(DETAIL_FAILED)
                self.loading = False
            return
        if self._stale(generation):
            return
        self.log = detail["log"]
        self.notes = detail["notes"]
        self.chapters = detail["chapters"]
        self.tags = detail["tags"]
        self.loading = False

    # =========================================================================
    # Log fields
    # =========================================================================

    async def save_log(self, rating: int | None, review_text: str) -> bool:
        if self.log is None:
            return False
        generation = self._generation
        try:
            updated = await self._client.update_log(
                self.log["id"], rating=rating, review_text=review_text
            )
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or LOG_UPDATE_FAILED)
            return False
        if self._stale(generation):
            return False
        self.log = updated
        if self._on_log_updated is not None:
            self._on_log_updated(updated)
        self.messages.show_success(LOG_UPDATED)
        return True

    # =========================================================================
    # Notes & chapters
    # =========================================================================

    def notes_for_chapter(self, chapter: str | None) -> list[dict]:
        """Notes whose label equals `chapter` exactly; None selects the general notes."""
        return [n for n in self.notes if n["chapter"] == chapter]

    async def add_note(self, note_text: str, chapter: str | None = None) -> bool:
        if self.log is None or not note_text.strip():
            return False
        generation = self._generation
        try:
            note = await self._client.create_note(self.log["id"], note_text.strip(), chapter)
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or NOTE_FAILED)
            return False
        if self._stale(generation):
            return False
        self.notes.append(note)
        return True

    async def edit_note(self, note_id: int, note_text: str) -> bool:
        if self.log is None or not note_text.strip():
            return False
        generation = self._generation
        try:
            note = await self._client.update_note(note_id, note_text=note_text.strip())
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or NOTE_FAILED)
            return False
        if self._stale(generation):
            return False
        self.notes = [note if n["id"] == note_id else n for n in self.notes]
        return True

    async def add_chapter(self, chapter_title: str) -> bool:
        if self.log is None or not chapter_title.strip():
            return False
        generation = self._generation
        try:
            chapter = await self._client.create_chapter(self.log["id"], chapter_title.strip())
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or CHAPTER_FAILED)
            return False
        if self._stale(generation):
            return False
        self.chapters.append(chapter)
        return True

    async def rename_chapter(self, chapter_id: int, new_title: str) -> bool:
        """Rename a chapter; the server relabels matching notes.

        A relabel failure is shown as its own error while the rename itself
        is kept. Notes are reloaded either way.
        """
        if self.log is None:
            return False
        generation = self._generation
        try:
            result = await self._client.update_chapter(chapter_id, chapter_title=new_title)
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or CHAPTER_UPDATE_FAILED)
            return False
        if self._stale(generation):
            return False

        chapter = result["chapter"]
        self.chapters = [chapter if c["id"] == chapter_id else c for c in self.chapters]
        if result.get("warning"):
            self.messages.show_error(result["warning"])
        else:
            self.messages.show_success(result["message"])

        try:
            notes = await self._client.list_notes(self.log["id"])
        except ClientError as e:
            if not self._stale(generation):
                logger.warning("notes_reload_failed", log_id=self.log_id, code=e.code)
            return True
        if not self._stale(generation):
            self.notes = notes
        return True

    # =========================================================================
    # Tags
    # =========================================================================

    async def add_tag(self, name: str) -> bool:
        """Attach a tag, refusing locally if the normalized name is already attached."""
        if self.log is None:
            return False
        normalized = name.strip().lower()
        if not normalized:
            return False
        if any(t["name"] == normalized for t in self.tags):
            self.messages.show_error(f'Tag "{normalized}" already added to this log.')
            return False

        generation = self._generation
        try:
            result = await self._client.attach_tag(self.log["id"], normalized)
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or TAG_ADD_FAILED)
            return False
        if self._stale(generation):
            return False

        self.tags = sorted(result["tags"], key=lambda t: t["name"])
        self.messages.show_success(result["message"])
        if self._on_tags_changed is not None:
            await self._on_tags_changed()
        return True

    async def remove_tag(self, tag_id: int) -> bool:
        if self.log is None:
            return False
        generation = self._generation
        try:
            await self._client.detach_tag(self.log["id"], tag_id)
        except ClientError as e:
            if not self._stale(generation):
                self.messages.show_error(e.message or TAG_REMOVE_FAILED)
            return False
        if self._stale(generation):
            return False
        self.tags = [t for t in self.tags if t["id"] != tag_id]
        return True


class DashboardView:
    """Dashboard state: session gate, log form, tag-filtered log list."""

    def __init__(self, client: BooklogClient, search_delay: float = DEFAULT_DEBOUNCE_S):
        self._client = client
        self.messages = FlashMessages()
        self.search = CatalogSearch(client, delay=search_delay)
        self.detail = LogDetailView(
            client,
            on_log_updated=self._replace_log,
            on_tags_changed=self.fetch_tag_options,
        )
        self.user: dict | None = None
        self.redirect_to: str | None = None
        self.logs: list[dict] = []
        self.tag_options: list[dict] = []
        self.tag_filter: int | None = None
        self.loading_logs = False
        self._logs_seq = 0
        self.form = LogForm()
        self.submitting = False
        self.warnings: list[str] = []

    async def load(self) -> bool:
        """Session gate, then the first fetch of tag options and logs.

        Returns False (with redirect_to set) when there is no identity.
        """
        try:
            self.user = await self._client.get_me()
        except ClientError as e:
            self.user = None
            if e.is_unauthenticated:
                self.redirect_to = SIGN_IN_PATH
            else:
                self.messages.show_error(SESSION_FAILED)
            return False

        await asyncio.gather(self.fetch_tag_options(), self.fetch_logs())
        return True

    async def fetch_logs(self) -> None:
        """Refetch the log list for the current filter.

        Only the latest fetch may write `logs`, so a slow response for an
        earlier filter never replaces the list for the current one.
        """
        self._logs_seq += 1
        seq = self._logs_seq
        self.loading_logs = True
        try:
            logs = await self._client.list_logs(tag_id=self.tag_filter)
        except ClientError as e:
            if seq == self._logs_seq:
                logger.warning("logs_fetch_failed", code=e.code)
                self.logs = []
                self.messages.show_error(LOGS_FAILED)
        else:
            if seq == self._logs_seq:
                self.logs = logs
        finally:
            if seq == self._logs_seq:
                self.loading_logs = False

    async def fetch_tag_options(self) -> None:
        try:
            self.tag_options = await self._client.list_tags()
        except ClientError as e:
            logger.warning("tag_options_fetch_failed", code=e.code)
            self.messages.show_error(TAG_OPTIONS_FAILED)

    async def set_filter(self, tag_id: int | None) -> None:
        self.tag_filter = tag_id
        await self.fetch_logs()

    # =========================================================================
    # Log form
    # =========================================================================

    def search_books(self, query: str) -> asyncio.Task | None:
        return self.search.set_query(query)

    def select_book(self, book: dict) -> None:
        self.form.book = book
        self.search.clear()

    def reset_form(self) -> None:
        self.form = LogForm()
        self.search.clear()

    async def submit_log(self) -> bool:
        """Log the selected book, then refetch the whole list and reset the form."""
        if self.form.book is None:
            self.messages.show_error(SELECT_BOOK_FIRST)
            return False

        self.submitting = True
        try:
            result = await self._client.log_book(
                self.form.book["id"],
                rating=self.form.rating,
                review_text=self.form.review_text,
                note=self.form.note,
                chapter=self.form.chapter,
            )
        except ClientError as e:
            self.messages.show_error(e.message or LOG_FAILED)
            return False
        finally:
            self.submitting = False

        self.warnings = result.get("warnings", [])
        for warning in self.warnings:
            logger.warning("log_partial_success", warning=warning)
        self.messages.show_success(" ".join([result["message"], *self.warnings]))
        self.reset_form()
        await self.fetch_logs()
        return True

    # =========================================================================
    # Detail & session
    # =========================================================================

    async def open_log(self, log: dict) -> LogDetailView:
        await self.detail.open(log)
        return self.detail

    def close_log(self) -> None:
        self.detail.close()

    def _replace_log(self, updated: dict) -> None:
        self.logs = [
            {**log, **updated} if log["id"] == updated["id"] else log for log in self.logs
        ]

    async def sign_out(self) -> None:
        try:
            await self._client.sign_out()
        except ClientError as e:
            logger.warning("sign_out_failed", code=e.code)
        self.close_log()
        self.search.clear()
        self.messages.clear()
        self.user = None
        self._logs_seq += 1
        self.logs = []
        self.loading_logs = False
        self.tag_options = []
        self.redirect_to = SIGN_IN_PATH
