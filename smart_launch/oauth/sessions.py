"""Binds persisted launch state to Session objects."""

from typing import TYPE_CHECKING

from ..client import Session
from ..models import LaunchState
from ..utils.errors import ConfigError

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter


def bind_session(adapter: "BaseAdapter", key: str, state: LaunchState) -> Session:
    """Wrap ``state`` in a Session that saves back under ``key``."""
    storage = adapter.get_storage()

    async def save(updated: LaunchState) -> None:
        await storage.set(key, updated.to_storage())

    return Session(state, save=save)


async def get_client(adapter: "BaseAdapter", key: str | None) -> Session:
    """Build a Session from the state stored under ``key``.

    Raises:
        ConfigError: If nothing is stored under ``key``
    """
    stored = await adapter.get_storage().get(key) if key else None
    state = LaunchState.from_storage(stored)
    if state is None:
        raise ConfigError("No state found in storage. Please (re)launch the SMART app")
    return bind_session(adapter, key, state)
