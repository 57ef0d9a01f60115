"""Environment adapters."""

from .aiohttp_adapter import AiohttpAdapter
from .base import BaseAdapter
from .window_adapter import WindowAdapter

__all__ = ["AiohttpAdapter", "BaseAdapter", "WindowAdapter"]
