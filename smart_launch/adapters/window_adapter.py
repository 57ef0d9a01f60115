"""Adapter for apps running inside a browsing context (webview, test harness)."""

import logging

from ..oauth.discovery import DiscoveryCache
from ..storage.memory import MemoryStorage
from ..transport.http import HttpTransport
from ..window import Window
from .base import BaseAdapter

logger = logging.getLogger(__name__)


class WindowAdapter(BaseAdapter):
    """Adapter bound to one Window for one page load.

    URL and session storage come from the window. Create a new adapter after
    every navigation, just like a page reload would.
    """

    def __init__(
        self,
        window: Window,
        transport: HttpTransport | None = None,
        discovery_cache: DiscoveryCache | None = None,
    ):
        super().__init__(transport, discovery_cache)
        self.window = window

    def _current_href(self) -> str:
        return self.window.location

    def get_storage(self) -> MemoryStorage:
        return self.window.session_storage

    async def redirect(self, url: str) -> None:
        self.window.navigate(url)

    async def replace_url(self, url: str) -> bool:
        logger.debug(f"Replacing current URL with {url}")
        self.window.replace_state(url)
        return True

    def get_browsing_context(self) -> Window:
        return self.window
