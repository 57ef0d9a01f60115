"""Storage backends for persisted launch state."""

from .base import Storage
from .file_storage import FileStorage
from .memory import MemoryStorage
from .namespaced import NamespacedStorage

__all__ = ["FileStorage", "MemoryStorage", "NamespacedStorage", "Storage"]
