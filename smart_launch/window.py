"""Browsing-context model: windows, frames, popups and message passing.

Hosts that render the app (embedded webviews, test harnesses) expose their
windows through this model so the launch state machine can detect frames and
popups, hand state to another window and receive its completion message.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .storage.memory import MemoryStorage
from .url import origin_of

logger = logging.getLogger(__name__)


@dataclass
class MessageEvent:
    """A message delivered to a window."""

    data: Any
    origin: str
    source: "Window | None" = None


MessageListener = Callable[[MessageEvent], None]


class MessageDispatcher:
    """Per-window registry of message listeners with explicit install/remove."""

    def __init__(self) -> None:
        self._listeners: list[MessageListener] = []

    def add_listener(self, listener: MessageListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: MessageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> list[MessageListener]:
        return list(self._listeners)

    def dispatch(self, event: MessageEvent) -> None:
        # Copy first: listeners may remove themselves while handling the event
        for listener in list(self._listeners):
            listener(event)


@dataclass(eq=False)
class Window:
    """A window or frame with its own location and session storage."""

    location: str
    name: str = ""
    parent: "Window | None" = field(default=None, repr=False)
    opener: "Window | None" = field(default=None, repr=False)
    popups_blocked: bool = False
    frames: dict[str, "Window"] = field(default_factory=dict, repr=False)
    session_storage: MemoryStorage = field(default_factory=MemoryStorage, repr=False)
    history: list[str] = field(default_factory=list, repr=False)
    closed: bool = False

    def __post_init__(self) -> None:
        self.messages = MessageDispatcher()
        if not self.history:
            self.history.append(self.location)

    @property
    def origin(self) -> str:
        return origin_of(self.location)

    @property
    def top(self) -> "Window":
        win = self
        while win.parent is not None and win.parent is not win:
            win = win.parent
        return win

    def is_in_frame(self) -> bool:
        return self.parent is not None and self.parent is not self

    def is_in_popup(self) -> bool:
        """A top-level named window with an opener that is not itself."""
        return (
            self.top is self
            and self.opener is not None
            and self.opener is not self
            and bool(self.name)
        )

    def navigate(self, url: str) -> None:
        """Load a new page (adds a history entry)."""
        logger.debug(f"Window {self.name or '<unnamed>'} navigating to {url}")
        self.location = url
        self.history.append(url)

    def replace_state(self, url: str) -> None:
        """Change the URL in place, without loading a page."""
        self.location = url
        if self.history:
            self.history[-1] = url
        else:
            self.history.append(url)

    def add_frame(self, name: str, location: str) -> "Window":
        frame = Window(location=location, name=name, parent=self)
        self.frames[name] = frame
        return frame

    def open(self, url: str = "", name: str = "", features: str = "") -> "Window | None":
        """Open a new top-level window. Returns None if popups are blocked."""
        if self.popups_blocked:
            logger.debug(f"Popup {name!r} blocked")
            return None
        logger.debug(f"Opening window {name!r} ({features})")
        return Window(location=url or "about:blank", name=name, opener=self)

    def close(self) -> None:
        self.closed = True

    def post_message(self, data: Any, target_origin: str, source: "Window | None" = None) -> None:
        """Queue a message for delivery to this window.

        Delivery happens on the next event loop iteration. Messages to closed
        windows, or whose target origin does not match this window, are
        dropped silently.
        """
        if self.closed:
            logger.debug("Dropping message to closed window")
            return
        if target_origin != "*" and target_origin != self.origin:
            logger.debug(f"Dropping message for origin {target_origin} (window is {self.origin})")
            return

        event = MessageEvent(
            data=data,
            origin=source.origin if source is not None else target_origin,
            source=source,
        )
        asyncio.get_running_loop().call_soon(self._deliver, event)

    def _deliver(self, event: MessageEvent) -> None:
        if not self.closed:
            self.messages.dispatch(event)
