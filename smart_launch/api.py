"""Launch operations bound to one environment adapter."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .client import Session
from .models import LaunchState, NavigatingAway
from .oauth import launch, revival

if TYPE_CHECKING:
    from .adapters.base import BaseAdapter


class SmartApi:
    """The public entry points of the library for a given adapter.

    Example:
        smart = WindowAdapter(window).get_smart_api()
        outcome = await smart.authorize(AuthorizeParams(client_id="my_app", scope="launch"))
    """

    def __init__(self, adapter: "BaseAdapter"):
        self.adapter = adapter

    async def authorize(
        self, params: launch.AuthorizeParams | list[launch.AuthorizeParams] | None = None
    ) -> str | NavigatingAway:
        return await launch.authorize(self.adapter, params)

    async def ready(
        self,
        on_success: Callable[[Session], Any] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
    ) -> Session | NavigatingAway | Any:
        return await revival.ready(self.adapter, on_success, on_error)

    async def init(
        self, options: launch.AuthorizeParams | list[launch.AuthorizeParams]
    ) -> Session | NavigatingAway:
        return await revival.init(self.adapter, options)

    def client(self, state: str | LaunchState | dict[str, Any]) -> Session:
        """Build a session without going through the launch.

        Args:
            state: A FHIR server URL (for open servers), a LaunchState, or
                a dict that validates as one

        Returns:
            A session with no save callback
        """
        if isinstance(state, str):
            state = LaunchState(server_url=state, redirect_uri=self.adapter.relative("."))
        return Session(LaunchState.from_storage(state))
