"""Storage interface for persisted launch state."""

from abc import ABC, abstractmethod
from typing import Any


class Storage(ABC):
    """Async key-value store.

    Values are JSON-compatible: launch states are stored as dicts and the
    SMART_KEY alias as a plain string. Implementations can be replaced with
    database or session-backed storage by implementing the same interface.
    """

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the value stored under ``key`` or None."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    async def unset(self, key: str) -> bool:
        """Remove ``key``. Returns True if something was removed."""
