"""Ephemeral flash messages.

A view holds at most one error and one success message. Each expires
`ttl` seconds after it was shown; expiry is checked on read so no timer
task is needed. Showing one kind clears the other.
"""

import time
from collections.abc import Callable

DEFAULT_TTL_S = 5.0


class FlashMessages:
    def __init__(self, ttl: float = DEFAULT_TTL_S, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._error: tuple[str, float] | None = None
        self._success: tuple[str, float] | None = None

    def show_error(self, message: str) -> None:
        self._error = (message, self._clock() + self.ttl)
        self._success = None

    def show_success(self, message: str) -> None:
        self._success = (message, self._clock() + self.ttl)
        self._error = None

    def _expire(self) -> None:
        now = self._clock()
        if self._error is not None and now >= self._error[1]:
            self._error = None
        if self._success is not None and now >= self._success[1]:
            self._success = None

    @property
    def error(self) -> str | None:
        self._expire()
        return self._error[0] if self._error else None

    @property
    def success(self) -> str | None:
        self._expire()
        return self._success[0] if self._success else None

    def clear(self) -> None:
        self._error = None
        self._success = None
