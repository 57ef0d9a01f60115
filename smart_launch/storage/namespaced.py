"""Storage view that confines keys to one namespace."""

from typing import Any

from .base import Storage


class NamespacedStorage(Storage):
    """Prefixes every key with a namespace before delegating to ``inner``.

    Lets several users share one backend (e.g. a server-wide FileStorage)
    without seeing each other's state or SMART_KEY alias.
    """

    def __init__(self, inner: Storage, namespace: str):
        if not namespace:
            raise ValueError("namespace must not be empty")
        self.inner = inner
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Any:
        return await self.inner.get(self._key(key))

    async def set(self, key: str, value: Any) -> None:
        await self.inner.set(self._key(key), value)

    async def unset(self, key: str) -> bool:
        return await self.inner.unset(self._key(key))
