"""Starts the SMART launch sequence.

``authorize()`` builds and persists the launch state, discovers the server's
OAuth endpoints and sends the user agent to the authorization server.

IMPORTANT: once ``authorize()`` navigates, the current page is done. It
returns a ``NavigatingAway`` outcome and nothing should be chained after it.
"""

import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union
from urllib.parse import quote

from ..core.config import settings
from ..models import SMART_KEY, LaunchState, NavigatingAway, NavigationKind
from ..utils.errors import ConfigError
from ..utils.helpers import random_string
from ..window import Window
from .handshake import CompletionListener, get_target_window, launch_in_target

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter

logger = logging.getLogger(__name__)

IssMatch = Union[str, re.Pattern[str], Callable[[str], Any]]
TargetOption = Union[str, Window, Callable[[], Union[Window, str, Awaitable[Any]]]]

_ABSOLUTE_URL = re.compile(r"^https?://")


@dataclass
class AuthorizeParams:
    """Options for one launch configuration."""

    client_id: str | None = None
    scope: str = ""
    redirect_uri: str | None = None
    iss: str | None = None
    fhir_service_url: str | None = None
    launch: str | None = None
    client_secret: str | None = None

    # Development overrides merged into the token response
    fake_token_response: Mapping[str, Any] | None = None
    patient_id: str | None = None
    encounter_id: str | None = None

    # Dispatch
    no_redirect: bool = False
    target: TargetOption | None = None
    width: int | None = None
    height: int | None = None
    complete_in_target: bool | None = None

    multiple: bool = False

    # Multi-config selection
    iss_match: IssMatch | None = None

    def matches(self, iss: str) -> bool:
        """Check whether this configuration applies to the given issuer."""
        if self.iss_match is None:
            return False
        if isinstance(self.iss_match, str):
            return self.iss_match == iss
        if isinstance(self.iss_match, re.Pattern):
            return self.iss_match.search(iss) is not None
        if callable(self.iss_match):
            return bool(self.iss_match(iss))
        return False


def pick_config(configs: list[AuthorizeParams], iss: str) -> AuthorizeParams:
    """Return the first configuration whose ``iss_match`` accepts ``iss``.

    Raises:
        ConfigError: If no configuration matches
    """
    for config in configs:
        if config.matches(iss):
            return config
    raise ConfigError(f'No configuration found matching the current "iss" parameter "{iss}"')


def build_authorize_url(
    authorize_uri: str,
    client_id: str | None,
    scope: str,
    redirect_uri: str,
    server_url: str,
    state_key: str,
    launch: str | None = None,
) -> str:
    """Build the authorization request URL (RFC 6749 Section 4.1.1)."""
    params = [
        ("response_type", "code"),
        ("client_id", client_id or ""),
        ("scope", scope),
        ("redirect_uri", redirect_uri),
        ("aud", server_url),
        ("state", state_key),
    ]

    # Also pass this in case of EHR launch
    if launch:
        params.append(("launch", launch))

    query = "&".join(f"{name}={quote(value, safe='')}" for name, value in params)
    return f"{authorize_uri}?{query}"


def _state_redirect_url(redirect_uri: str, state_key: str) -> str:
    return f"{redirect_uri}?state={quote(state_key, safe='')}"


async def _navigate(adapter: "BaseAdapter", url: str) -> NavigatingAway:
    await adapter.redirect(url)
    return NavigatingAway(url=url, kind=NavigationKind.REDIRECT)


async def authorize(
    adapter: "BaseAdapter",
    params: AuthorizeParams | list[AuthorizeParams] | None = None,
) -> str | NavigatingAway:
    """Start the SMART launch sequence.

    Args:
        adapter: The environment adapter
        params: A launch configuration, or a list of them for apps registered
            with several issuers (selected by ``iss_match``)

    Returns:
        The authorization URL when ``no_redirect`` is set, otherwise the
        terminal NavigatingAway outcome

    Raises:
        ConfigError: If no server URL is known or no configuration matches
        DiscoveryError: If the OAuth endpoints cannot be discovered
    """
    url = adapter.get_url()

    # Multiple configs for EHR launches
    if isinstance(params, list):
        url_iss = url.get("iss") or url.get("fhirServiceUrl")
        if not url_iss:
            raise ConfigError(
                'Passing in an "iss" url parameter is required if authorize '
                "uses multiple configurations"
            )
        return await authorize(adapter, pick_config(params, url_iss))

    params = params or AuthorizeParams()
    storage = adapter.get_storage()

    # For these three an url param takes precedence over inline option
    iss = url.get("iss") or params.iss
    fhir_service_url = url.get("fhirServiceUrl") or params.fhir_service_url
    launch = url.get("launch") or params.launch

    redirect_uri = params.redirect_uri
    if not redirect_uri:
        redirect_uri = adapter.relative(".")
    elif not _ABSOLUTE_URL.match(redirect_uri):
        redirect_uri = adapter.relative(redirect_uri)

    server_url = str(iss or fhir_service_url or "")
    if not server_url:
        raise ConfigError(
            'No server url found. It must be specified as "iss" or as "fhirServiceUrl" parameter'
        )

    if iss:
        logger.debug(f"Making {'EHR' if launch else 'standalone'} launch...")

    # Append launch scope if needed
    scope = params.scope
    if launch and "launch" not in scope.split():
        scope = f"{scope} launch" if scope else "launch"

    complete_in_target = params.complete_in_target
    context = adapter.get_browsing_context()
    if context is not None:
        in_frame = context.is_in_frame()
        in_popup = context.is_in_popup()

        if (in_frame or in_popup) and complete_in_target is None:
            # Default to completing in the frame itself: the whole app may be
            # rendered in an iframe (some EHRs do this) without any intent to
            # complete in the parent.
            complete_in_target = in_frame
            logger.warning(
                "Your app is being authorized from within an iframe or popup "
                'window. Please be explicit and provide a "complete_in_target" '
                'option. Use "True" to complete the authorization in the '
                'same window, or "False" to try to complete it in the parent '
                "or the opener window."
            )

    state_key = random_string(settings.state_key_length)
    state = LaunchState(
        client_id=params.client_id,
        scope=scope,
        redirect_uri=redirect_uri,
        server_url=server_url,
        client_secret=params.client_secret,
        token_response={},
        multiple=params.multiple,
        complete_in_target=complete_in_target,
    )

    if not params.multiple:
        await storage.set(SMART_KEY, state_key)

    # Development overrides
    if params.fake_token_response:
        state.token_response.update(params.fake_token_response)
    if params.patient_id:
        state.token_response["patient"] = params.patient_id
    if params.encounter_id:
        state.token_response["encounter"] = params.encounter_id

    redirect_url = _state_redirect_url(redirect_uri, state_key)

    # Bypass oauth if fhirServiceUrl is used (but iss takes precedence)
    if fhir_service_url and not iss:
        logger.info("Making fake launch...")
        await storage.set(state_key, state.to_storage())
        if params.no_redirect:
            return redirect_url
        return await _navigate(adapter, redirect_url)

    # Persist before discovery so an interrupted launch can still be resumed
    await storage.set(state_key, state.to_storage())

    endpoints = await adapter.get_discoverer().discover(
        server_url, adapter.get_abort_controller()
    )
    state.registration_uri = endpoints.registration_uri
    state.authorize_uri = endpoints.authorize_uri
    state.token_uri = endpoints.token_uri
    await storage.set(state_key, state.to_storage())

    # Open server, no authorization needed
    if not state.authorize_uri:
        logger.debug("No authorize endpoint found. Skipping authorization.")
        if params.no_redirect:
            return redirect_url
        return await _navigate(adapter, redirect_url)

    authorize_url = build_authorize_url(
        state.authorize_uri,
        params.client_id,
        scope,
        redirect_uri,
        server_url,
        state_key,
        launch,
    )

    if params.no_redirect:
        return authorize_url

    if params.target is not None and context is not None:
        return await _navigate_target(
            adapter, context, params, state_key, state, authorize_url
        )

    return await _navigate(adapter, authorize_url)


async def _navigate_target(
    adapter: "BaseAdapter",
    context: Window,
    params: AuthorizeParams,
    state_key: str,
    state: LaunchState,
    authorize_url: str,
) -> NavigatingAway:
    target_window = await get_target_window(context, params.target, params.width, params.height)
    win = await launch_in_target(context, target_window, state_key, state.to_storage())

    if win is context:
        return await _navigate(adapter, authorize_url)

    win.navigate(authorize_url)
    listener = CompletionListener(context)
    listener.install()
    logger.debug(f"Authorizing in window {win.name or '<unnamed>'}; waiting for completeAuth")
    return NavigatingAway(url=authorize_url, kind=NavigationKind.TARGET_WINDOW, listener=listener)
