"""Debounced catalog search with last-request-wins.

Each call to set_query() supersedes the previous one: the pending task is
cancelled (whether it is still debouncing or already waiting on the
network) and a sequence number is bumped. A task only writes `results`,
`error` or `loading` while its sequence number is still the latest, so a
slow earlier response can never overwrite a newer one.
"""

import asyncio

from booklog.client.api import BooklogClient, ClientError
from booklog.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DEBOUNCE_S = 0.3
SEARCH_FAILED = "Could not search for books."


class CatalogSearch:
    def __init__(self, client: BooklogClient, delay: float = DEFAULT_DEBOUNCE_S):
        self._client = client
        self.delay = delay
        self.query = ""
        self.results: list[dict] = []
        self.error: str | None = None
        self.loading = False
        self._seq = 0
        self._task: asyncio.Task | None = None

    def set_query(self, query: str) -> asyncio.Task | None:
        """Schedule a search for `query` after the debounce delay.

        Blank input clears results immediately and sends nothing. Must be
        called from a running event loop.
        """
        self.query = query
        self._supersede()

        term = query.strip()
        if not term:
            self.results = []
            self.error = None
            self.loading = False
            return None

        self._task = asyncio.get_running_loop().create_task(self._run(term, self._seq))
        return self._task

    def clear(self) -> None:
        """Drop the query, the results and any pending search."""
        self.query = ""
        self._supersede()
        self.results = []
        self.error = None
        self.loading = False

    async def wait(self) -> None:
        """Wait until the latest scheduled search has finished or been superseded."""
        if self._task is not None:
            await asyncio.wait({self._task})

    def _supersede(self) -> None:
        self._seq += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, term: str, seq: int) -> None:
        await asyncio.sleep(self.delay)
        if seq != self._seq:
            return

        self.loading = True
        try:
            results = await self._client.search_books(term)
        except ClientError as e:
            if seq == self._seq:
                logger.warning("catalog_search_failed", code=e.code, error=e.message)
                self.results = []
                self.error = SEARCH_FAILED
        else:
            if seq == self._seq:
                self.results = results
                self.error = None
        finally:
            if seq == self._seq:
                self.loading = False
