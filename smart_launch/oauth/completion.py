"""Completes the authorization on the redirect_uri page."""

import logging
from typing import TYPE_CHECKING

from ..client import Session
from ..models import SMART_KEY, LaunchState, NavigatingAway, NavigationKind
from ..utils.errors import AuthorizationError, ConfigError
from ..utils.helpers import get_access_token_expiration
from .handshake import COMPLETE_PARAM, send_completion
from .sessions import get_client
from .token_exchange import get_access_token

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter

logger = logging.getLogger(__name__)


async def clean_up_url(adapter: "BaseAdapter") -> None:
    """Remove ``code`` (and ``state`` for single launches) from the URL.

    ``code`` must go, otherwise the page would try to authorize again on every
    load. Unless in multiple mode, ``state`` is no longer needed either because
    it is aliased by SMART_KEY.
    """
    url = adapter.get_url()
    storage = adapter.get_storage()
    code = url.get("code")
    key = url.get("state")

    if code:
        url.delete("code")
        logger.debug("Removed code parameter from the url.")

    if key:
        stored = LaunchState.from_storage(await storage.get(key))
        if stored is not None and not stored.multiple:
            await storage.set(SMART_KEY, key)
            url.delete("state")
            logger.debug("Removed state parameter from the url.")

    # Without in-place replacement the code would stay in the URL and the page
    # would re-authorize on every load, so load the clean URL instead.
    if not await adapter.replace_url(url.href):
        await adapter.redirect(url.href)


async def complete_auth(adapter: "BaseAdapter") -> Session | NavigatingAway:
    """Finish the authorization after the authorization server redirected back.

    Returns:
        The authorized Session, or NavigatingAway when running in a popup or
        frame that hands the completion over to its opener or parent

    Raises:
        AuthorizationError: If the server redirected with an error
        ConfigError: If the state parameter or the stored state is missing
        ValidationError: If the token response has no access token
    """
    url = adapter.get_url()
    storage = adapter.get_storage()
    code = url.get("code")
    auth_error = url.get("error")
    auth_error_description = url.get("error_description")
    key = url.get("state")

    # The auth server has no other way to report a rejected authorization
    # than appending these parameters to the redirect url.
    if auth_error or auth_error_description:
        raise AuthorizationError(auth_error, auth_error_description)

    logger.debug(f"key: {key}, code: {'<present>' if code else None}")

    if not key:
        raise ConfigError("No 'state' parameter found. Please launch this as SMART app.")

    state = LaunchState.from_storage(await storage.get(key))
    if state is None:
        raise ConfigError("No state found! Please (re)launch the app.")

    # In a popup or frame, send the location back to the opener/parent and
    # stop. The one-shot "complete" parameter stops the escalation when the
    # opener or parent is itself framed.
    context = adapter.get_browsing_context()
    if context is not None and not state.complete_in_target:
        if (context.is_in_frame() or context.is_in_popup()) and not url.get(COMPLETE_PARAM):
            url.set(COMPLETE_PARAM, "1")
            send_completion(context, url.href)
            return NavigatingAway(url=url.href, kind=NavigationKind.PARENT_MESSAGE)

    url.delete(COMPLETE_PARAM)

    # No code (but a state) or an existing access token means the exchange
    # already happened and this is just a reload
    authorized = not code or state.is_authorized

    if not authorized:
        if not state.token_uri:
            raise ConfigError("No tokenUri found for this server")

        token_response = await get_access_token(adapter.get_transport(), code, state)

        state.expires_at = get_access_token_expiration(token_response)
        state.token_response = token_response
        await storage.set(key, state.to_storage())
        logger.info("Authorization successful!")
    else:
        logger.debug("Already authorized" if state.is_authorized else "No authorization needed")

    await clean_up_url(adapter)

    return await get_client(adapter, key)
