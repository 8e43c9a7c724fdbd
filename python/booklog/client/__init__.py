"""Client-side view state for the Booklog API.

Provides:
- BooklogClient: async HTTP client (envelope unwrapping, ClientError)
- CatalogSearch: debounced, last-request-wins catalog search
- FlashMessages: ephemeral error/success messages
- DashboardView / LogDetailView: per-view state objects
"""

from booklog.client.api import BooklogClient, ClientError
from booklog.client.messages import FlashMessages
from booklog.client.search import CatalogSearch
from booklog.client.views import DashboardView, LogDetailView, LogForm

__all__ = [
    "BooklogClient",
    "ClientError",
    "CatalogSearch",
    "FlashMessages",
    "DashboardView",
    "LogDetailView",
    "LogForm",
]
