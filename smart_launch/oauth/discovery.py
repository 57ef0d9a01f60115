"""SMART OAuth endpoint discovery.

Endpoints are looked up in two places: the ``.well-known/smart-configuration``
document and the OAuth extension of the server's CapabilityStatement
(``/metadata``). Both are fetched concurrently; whichever answers first wins.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..transport.abort import AbortController, AbortSignal
from ..transport.http import HttpTransport
from ..utils.errors import DiscoveryError, InvalidDiscoveryDocumentError
from ..utils.helpers import get_path
from .race import DiscoveryTask, any_success

logger = logging.getLogger(__name__)

OAUTH_URIS_EXTENSION = "http://fhir-registry.smarthealthit.org/StructureDefinition/oauth-uris"


@dataclass
class OAuthEndpoints:
    """OAuth endpoints of a FHIR server. Empty strings for an open server."""

    registration_uri: str = ""
    authorize_uri: str = ""
    token_uri: str = ""


class DiscoveryCache:
    """Fetched discovery documents keyed by URL.

    Lives as long as its owner (normally the adapter, i.e. one page load or
    one server process). Only successful fetches are cached.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Any] = {}

    def get(self, url: str) -> Any:
        return self._documents.get(url)

    def put(self, url: str, document: Any) -> None:
        self._documents[url] = document

    def clear(self) -> None:
        self._documents.clear()

    def __contains__(self, url: object) -> bool:
        return url in self._documents

    def __len__(self) -> int:
        return len(self._documents)


def _document_url(base_url: str, path: str) -> str:
    return str(base_url).rstrip("/") + "/" + path


class EndpointDiscoverer:
    """Fetches discovery documents and extracts OAuth endpoints from them."""

    def __init__(self, transport: HttpTransport, cache: DiscoveryCache | None = None):
        """Initialize discoverer.

        Args:
            transport: Transport used for the discovery requests
            cache: Document cache (default: a private cache for this discoverer)
        """
        self.transport = transport
        self.cache = cache if cache is not None else DiscoveryCache()

    async def _get_and_cache(self, url: str, signal: AbortSignal | None) -> Any:
        if url in self.cache:
            logger.debug(f"Using cached document for {url}")
            return self.cache.get(url)

        document = await self.transport.request(url, signal=signal)
        self.cache.put(url, document)
        return document

    async def fetch_well_known_json(
        self, base_url: str = "/", signal: AbortSignal | None = None
    ) -> Any:
        """Fetch the ``.well-known/smart-configuration`` document."""
        url = _document_url(base_url, ".well-known/smart-configuration")
        try:
            return await self._get_and_cache(url, signal)
        except Exception as e:
            raise DiscoveryError(f'Failed to fetch the well-known json "{url}". {e}') from e

    async def fetch_conformance_statement(
        self, base_url: str = "/", signal: AbortSignal | None = None
    ) -> Any:
        """Fetch the server's CapabilityStatement from ``/metadata``."""
        url = _document_url(base_url, "metadata")
        try:
            return await self._get_and_cache(url, signal)
        except Exception as e:
            raise DiscoveryError(
                f'Failed to fetch the conformance statement from "{url}". {e}'
            ) from e

    async def from_well_known_json(
        self, base_url: str = "/", signal: AbortSignal | None = None
    ) -> OAuthEndpoints:
        """Extract endpoints from the well-known document.

        Raises:
            InvalidDiscoveryDocumentError: If the authorization or token endpoint is missing
        """
        meta = await self.fetch_well_known_json(base_url, signal)

        if not isinstance(meta, dict):
            raise InvalidDiscoveryDocumentError()
        if not meta.get("authorization_endpoint") or not meta.get("token_endpoint"):
            raise InvalidDiscoveryDocumentError()

        return OAuthEndpoints(
            registration_uri=meta.get("registration_endpoint") or "",
            authorize_uri=meta["authorization_endpoint"],
            token_uri=meta["token_endpoint"],
        )

    async def from_conformance_statement(
        self, base_url: str = "/", signal: AbortSignal | None = None
    ) -> OAuthEndpoints:
        """Extract endpoints from the CapabilityStatement OAuth extension.

        Sub-extensions that are not present are left as empty strings.
        """
        meta = await self.fetch_conformance_statement(base_url, signal)

        extensions = get_path(meta or {}, "rest.0.security.extension") or []
        oauth_uris = next(
            (
                ext.get("extension")
                for ext in extensions
                if isinstance(ext, dict) and ext.get("url") == OAUTH_URIS_EXTENSION
            ),
            None,
        )

        endpoints = OAuthEndpoints()
        for ext in oauth_uris or []:
            if ext.get("url") == "register":
                endpoints.registration_uri = ext.get("valueUri", "")
            elif ext.get("url") == "authorize":
                endpoints.authorize_uri = ext.get("valueUri", "")
            elif ext.get("url") == "token":
                endpoints.token_uri = ext.get("valueUri", "")

        return endpoints

    async def discover(
        self,
        base_url: str = "/",
        abort_controller_class: type[AbortController] = AbortController,
    ) -> OAuthEndpoints:
        """Race both discovery strategies and return the first success.

        Raises:
            DiscoveryError: If both strategies fail (messages joined in order)
        """
        logger.debug(f"Discovering OAuth endpoints for {base_url}")

        well_known_controller = abort_controller_class()
        conformance_controller = abort_controller_class()

        endpoints = await any_success(
            [
                DiscoveryTask(
                    controller=well_known_controller,
                    awaitable=self.from_well_known_json(base_url, well_known_controller.signal),
                ),
                DiscoveryTask(
                    controller=conformance_controller,
                    awaitable=self.from_conformance_statement(
                        base_url, conformance_controller.signal
                    ),
                ),
            ]
        )

        logger.debug(f"Authorization endpoint: {endpoints.authorize_uri or '<none>'}")
        logger.debug(f"Token endpoint: {endpoints.token_uri or '<none>'}")
        return endpoints
