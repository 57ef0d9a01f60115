"""Cooperative cancellation signals for in-flight requests."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class AbortSignal:
    """Read side of an AbortController.

    Listeners are plain callables invoked once, synchronously, when the
    controller aborts. A listener added after the abort is invoked right away.
    """

    def __init__(self) -> None:
        self._aborted = False
        self._listeners: list[Callable[[], object]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    def add_listener(self, listener: Callable[[], object]) -> None:
        if self._aborted:
            listener()
            return
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], object]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _abort(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener()


class AbortController:
    """Owner side of an abort signal."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self) -> None:
        logger.debug("Aborting request")
        self.signal._abort()
