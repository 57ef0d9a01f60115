"""Base class for environment adapters.

An adapter is everything the launch state machine needs from the environment
it runs in: the current URL, a place to persist state, a way to navigate, and
the transport used for discovery and token requests.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..oauth.discovery import DiscoveryCache, EndpointDiscoverer
from ..storage.base import Storage
from ..transport.abort import AbortController
from ..transport.http import HttpTransport
from ..url import LaunchUrl
from ..window import Window

if TYPE_CHECKING:
    from ..api import SmartApi


class BaseAdapter(ABC):
    """Environment adapter with shared transport and discovery handling."""

    def __init__(
        self,
        transport: HttpTransport | None = None,
        discovery_cache: DiscoveryCache | None = None,
    ):
        """Initialize adapter base.

        Args:
            transport: HTTP transport (default: a new HttpTransport)
            discovery_cache: Discovery document cache; pass a shared instance
                to reuse documents across adapters (default: per adapter)
        """
        self.transport = transport or HttpTransport()
        self.discovery_cache = discovery_cache if discovery_cache is not None else DiscoveryCache()
        self._url: LaunchUrl | None = None
        self._discoverer: EndpointDiscoverer | None = None

    @abstractmethod
    def _current_href(self) -> str:
        """Return the absolute URL of the current page or request."""

    @abstractmethod
    def get_storage(self) -> Storage:
        """Return the storage used for launch state."""

    @abstractmethod
    async def redirect(self, url: str) -> None:
        """Navigate the user agent to ``url``."""

    def get_url(self) -> LaunchUrl:
        """Return the current URL. The same instance is returned on every call."""
        if self._url is None:
            self._url = LaunchUrl(self._current_href())
        return self._url

    def relative(self, path: str) -> str:
        """Resolve ``path`` against the current URL."""
        return self.get_url().join(path)

    def get_abort_controller(self) -> type[AbortController]:
        return AbortController

    def get_browsing_context(self) -> Window | None:
        """Return the window the app runs in, or None outside a browsing context."""
        return None

    async def replace_url(self, url: str) -> bool:
        """Replace the current URL without navigating.

        Returns:
            False if the environment cannot do that; callers then redirect
        """
        return False

    def is_navigation(self, error: BaseException) -> bool:
        """Check whether ``error`` is how this environment performs a redirect.

        Such exceptions carry the navigation out of the handler and are never
        treated as failures.
        """
        return False

    def get_transport(self) -> HttpTransport:
        return self.transport

    def get_discoverer(self) -> EndpointDiscoverer:
        if self._discoverer is None:
            self._discoverer = EndpointDiscoverer(self.transport, self.discovery_cache)
        return self._discoverer

    def get_smart_api(self) -> "SmartApi":
        """Return the launch operations bound to this adapter."""
        from ..api import SmartApi

        return SmartApi(self)
