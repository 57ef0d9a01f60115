"""Cross-window completion handshake.

When authorization happens in a popup, a frame or another named window, the
state is copied into that window's session storage and the window is sent to
the authorization server. Once the redirect lands there, the completion
handler posts a ``completeAuth`` message back to the parent or opener, which
then navigates itself to the carried URL and finishes the flow.
"""

import asyncio
import inspect
import logging
from typing import Any

from ..core.config import settings
from ..utils.errors import HandshakeTimeoutError
from ..window import MessageEvent, Window

logger = logging.getLogger(__name__)

COMPLETE_AUTH = "completeAuth"
COMPLETE_PARAM = "complete"
POPUP_NAME = "SMARTAuthPopup"


def complete_auth_message(url: str) -> dict[str, str]:
    return {"type": COMPLETE_AUTH, "url": url}


async def get_target_window(
    context: Window,
    target: Any,
    width: int | None = None,
    height: int | None = None,
) -> Window:
    """Resolve a ``target`` option to a window.

    Args:
        context: The window the app is running in
        target: A Window, a (possibly async) callable returning one, or one of
            "_self", "_parent", "_top", "_blank", "popup" or a frame name
        width: Popup width (default: settings.popup_width)
        height: Popup height (default: settings.popup_height)

    Returns:
        The resolved window. Anything that cannot be resolved falls back to
        ``context`` itself.
    """
    width = width or settings.popup_width
    height = height or settings.popup_height

    if callable(target):
        target = target()
        if inspect.isawaitable(target):
            target = await target

    if isinstance(target, Window):
        return target

    if not isinstance(target, str):
        logger.debug(f"Invalid target type {type(target).__name__!r}. Falling back to '_self'.")
        return context

    if target == "_self":
        return context
    if target == "_parent":
        return context.parent or context
    if target == "_top":
        return context.top

    if target in ("_blank", "popup"):
        features = ""
        if target == "popup":
            features = ",".join(
                [
                    f"height={height}",
                    f"width={width}",
                    "menubar=0",
                    "resizable=1",
                    "status=0",
                ]
            )
        win = context.open("", POPUP_NAME, features)
        if win is None:
            logger.debug("Cannot open window, perhaps it was blocked. Falling back to '_self'.")
            return context
        return win

    frame = context.frames.get(target)
    if frame is not None:
        return frame

    logger.debug(f"Unknown target {target!r}. Falling back to '_self'.")
    return context


class CompletionListener:
    """Waits on the launching window for the ``completeAuth`` message.

    Installed by ``authorize()`` when the flow continues in another window.
    Accepts only messages from the launching window's own origin; on the first
    one it removes itself and navigates the window to the carried URL.
    """

    def __init__(self, window: Window):
        self.window = window
        self.url: str | None = None
        self._received = asyncio.Event()

    @property
    def installed(self) -> bool:
        return self in self.window.messages.listeners

    def install(self) -> None:
        self.window.messages.add_listener(self)

    def remove(self) -> None:
        self.window.messages.remove_listener(self)

    def __call__(self, event: MessageEvent) -> None:
        data = event.data if isinstance(event.data, dict) else {}
        if data.get("type") != COMPLETE_AUTH or event.origin != self.window.origin:
            return

        self.remove()
        self.url = data.get("url")
        logger.debug(f"Received completeAuth message, navigating to {self.url}")
        if self.url:
            self.window.navigate(self.url)
        self._received.set()

    async def wait(self, timeout: float | None = None) -> str | None:
        """Wait for the completion message and return the URL it carried.

        Args:
            timeout: Seconds to wait (default: settings.handshake_timeout;
                None waits indefinitely)

        Raises:
            HandshakeTimeoutError: If no message arrives in time. The listener
                is removed.
        """
        timeout = settings.handshake_timeout if timeout is None else timeout
        try:
            await asyncio.wait_for(self._received.wait(), timeout)
        except asyncio.TimeoutError:
            self.remove()
            raise HandshakeTimeoutError(timeout) from None
        return self.url


async def launch_in_target(
    context: Window,
    target_window: Window,
    state_key: str,
    state: dict[str, Any],
) -> Window:
    """Hand the launch state over to ``target_window``.

    Returns:
        The window that should be navigated: ``target_window`` if the state
        could be transferred, otherwise ``context`` (different origin).
    """
    if target_window is context:
        return context

    if target_window.origin != context.origin and target_window.location != "about:blank":
        logger.debug(
            f"Target window origin {target_window.origin} differs from "
            f"{context.origin}. Falling back to '_self'."
        )
        return context

    await target_window.session_storage.set(state_key, state)
    return target_window


def send_completion(context: Window, url: str) -> None:
    """Post ``completeAuth`` to the parent (frame) or opener (popup).

    ``url`` must already carry the one-shot ``complete=1`` guard. Popups close
    themselves after posting.
    """
    message = complete_auth_message(url)
    origin = context.origin

    if context.is_in_frame() and context.parent is not None:
        logger.debug("Posting completeAuth to parent window")
        context.parent.post_message(message, origin, source=context)

    if context.is_in_popup() and context.opener is not None:
        logger.debug("Posting completeAuth to opener window")
        context.opener.post_message(message, origin, source=context)
        context.close()
