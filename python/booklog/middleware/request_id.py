"""X-Request-ID middleware for request correlation and access logging.

Must be added LAST so it runs FIRST (outermost): auth failures produced by
inner middleware still carry the X-Request-ID header and a request_id in the
error envelope.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from booklog.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Alphanumeric, dots, hyphens, underscores; UUIDs also match this
VALID_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

logger = get_logger(__name__)


def resolve_request_id(incoming: str | None) -> str:
    """Return a normalized incoming request ID, or a fresh UUID4 if unusable.

    UUIDs are lowercased; other valid IDs are preserved as-is.
    """
    if (
        incoming
        and len(incoming.encode("utf-8")) <= MAX_REQUEST_ID_LENGTH
        and VALID_REQUEST_ID_PATTERN.match(incoming)
    ):
        return incoming.lower() if UUID_PATTERN.match(incoming) else incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request, response and log entry.

    Args:
        app: The ASGI application.
        log_requests: If True, emit one access log entry per request.
    """

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.monotonic()
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        request.state.request_id = request_id
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)

            viewer = getattr(request.state, "viewer", None)
            if viewer is not None:
                set_request_context(request_id, user_id=str(viewer.user_id))

            response.headers[REQUEST_ID_HEADER] = request_id

            if self.log_requests:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                )

            return response

        except Exception:
            logger.exception("request_failed")
            raise

        finally:
            clear_request_context()
