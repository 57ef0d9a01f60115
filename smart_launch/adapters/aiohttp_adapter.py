"""Adapter for server-side apps built on aiohttp."""

import logging

from aiohttp import web

from ..core.config import settings
from ..oauth.discovery import DiscoveryCache
from ..storage.base import Storage
from ..storage.file_storage import FileStorage
from ..storage.namespaced import NamespacedStorage
from ..transport.http import HttpTransport
from ..utils.errors import ConfigError
from .base import BaseAdapter

logger = logging.getLogger(__name__)


class AiohttpAdapter(BaseAdapter):
    """Adapter bound to one aiohttp request.

    ``redirect()`` raises ``web.HTTPFound``, so the handler stops there and
    aiohttp sends the redirect response.

    Launch state belongs to one user. Pass either a per-user ``storage`` or a
    ``session_id`` (typically from the app's session cookie); with a
    session_id, state goes to the FileStorage configured from settings with
    every key confined to that session.

    Example:
        async def launch(request: web.Request) -> web.Response:
            adapter = AiohttpAdapter(request, session_id=request.cookies["sid"])
            await authorize(adapter, AuthorizeParams(client_id="my_app", scope="launch"))
    """

    def __init__(
        self,
        request: web.Request,
        storage: Storage | None = None,
        session_id: str | None = None,
        transport: HttpTransport | None = None,
        discovery_cache: DiscoveryCache | None = None,
    ):
        """Initialize adapter.

        Raises:
            ConfigError: If neither storage nor session_id is given
        """
        if storage is None and not session_id:
            raise ConfigError("AiohttpAdapter needs a per-user storage or a session_id")

        super().__init__(transport, discovery_cache)
        self.request = request
        self.session_id = session_id
        self._storage = storage

    def _current_href(self) -> str:
        return str(self.request.url)

    def get_storage(self) -> Storage:
        if self._storage is None:
            self._storage = NamespacedStorage(
                FileStorage(settings.state_storage_path, settings.state_encryption_key),
                self.session_id,
            )
        return self._storage

    async def redirect(self, url: str) -> None:
        logger.debug(f"Redirecting to {url}")
        raise web.HTTPFound(location=url)

    def is_navigation(self, error: BaseException) -> bool:
        return isinstance(error, web.HTTPRedirection)
