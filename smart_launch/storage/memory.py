"""In-memory storage, the equivalent of a window's session storage."""

import copy
from typing import Any

from .base import Storage


class MemoryStorage(Storage):
    """Dict-backed storage.

    Values are deep-copied on the way in and out, so mutating a loaded state
    never changes what is stored until it is explicitly saved again.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def unset(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def keys(self) -> list[str]:
        return list(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
