"""Page-load entry points that revive or complete a launch.

``ready()`` and ``init()`` are what apps call on every page load. Both are
resumable from nothing but storage and the current URL.
"""

import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..client import Session
from ..models import SMART_KEY, LaunchState, NavigatingAway, NavigationKind
from .completion import complete_auth
from .launch import AuthorizeParams, authorize
from .sessions import bind_session, get_client

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def ready(
    adapter: "BaseAdapter",
    on_success: Callable[[Session], Any] | None = None,
    on_error: Callable[[Exception], Any] | None = None,
) -> Session | NavigatingAway | Any:
    """Return the session for the current page load.

    Completes the code flow when coming back from the auth server, otherwise
    revives the session named by ``state`` (multiple mode) or by SMART_KEY.

    Args:
        adapter: The environment adapter
        on_success: Called (and awaited if needed) with the session
        on_error: Called with any error, including one raised by on_success;
            its return value is returned instead. Redirects raised by the
            adapter (see ``BaseAdapter.is_navigation``) always propagate.

    Returns:
        The session (on_success does not change it), NavigatingAway from a
        popup or frame, or whatever on_error returned
    """
    url = adapter.get_url()
    code = url.get("code")
    key = url.get("state")

    try:
        if code:
            # Coming back from the auth server
            outcome = await complete_auth(adapter)
        elif key:
            # Revive an app in multiple mode
            outcome = await get_client(adapter, key)
        else:
            # Revive singular app
            outcome = await get_client(adapter, await adapter.get_storage().get(SMART_KEY))

        if on_success is not None and isinstance(outcome, Session):
            await _maybe_await(on_success(outcome))

    except Exception as e:
        if on_error is None or adapter.is_navigation(e):
            raise
        return await _maybe_await(on_error(e))

    return outcome


async def init(
    adapter: "BaseAdapter",
    options: AuthorizeParams | list[AuthorizeParams],
) -> Session | NavigatingAway:
    """Authorize and complete in one page (launch_uri equal to redirect_uri).

    The page is loaded twice: first this redirects to the auth server, then
    the server redirects back and this completes the authorization. Only the
    second load produces a session; the first returns NavigatingAway.

    For standalone launches, combine this with the offline_access scope. Once
    the access token expires there is no way to re-authorize without a
    refresh token other than clearing storage.
    """
    url = adapter.get_url()
    code = url.get("code")
    key = url.get("state")

    if code and key:
        return await complete_auth(adapter)

    # A session was already created on an earlier load; revive it
    storage = adapter.get_storage()
    cached_key = key or await storage.get(SMART_KEY)
    cached = LaunchState.from_storage(await storage.get(cached_key)) if cached_key else None
    if cached is not None:
        logger.debug(f"Reviving cached session {cached_key}")
        return bind_session(adapter, cached_key, cached)

    outcome = await authorize(adapter, options)
    if isinstance(outcome, str):
        return NavigatingAway(url=outcome, kind=NavigationKind.DEFERRED)
    return outcome
