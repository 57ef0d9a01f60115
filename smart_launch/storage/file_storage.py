"""File-based launch state storage with encryption support.

Each key is stored in its own JSON file named after a hash of the key. The
design allows easy migration to database or session-backed storage by
implementing the same Storage interface.
"""

import asyncio
import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from ..utils.errors import StorageError
from .base import Storage

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """
    File-based storage with optional encryption.

    Security considerations:
    - Entries are encrypted at rest using Fernet (symmetric encryption)
    - Files are created with 0600 permissions
    - Entries hold client secrets and access tokens; in production, consider
      an encryption key from a proper secret management service
    """

    def __init__(self, storage_path: Path, encryption_key: str | None = None):
        """
        Initialize file storage.

        Args:
            storage_path: Directory to store state files
            encryption_key: Optional encryption key (base64-encoded Fernet key)
        """
        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

        self.cipher: Fernet | None = None
        if encryption_key:
            try:
                self.cipher = Fernet(encryption_key.encode())
                logger.info("Launch state encryption enabled")
            except ValueError as e:
                logger.warning(
                    f"Failed to initialize encryption: {e}. State will be stored unencrypted."
                )
        else:
            logger.warning("No encryption key provided. State will be stored unencrypted.")

    def _get_path(self, key: str) -> Path:
        """Get file path for a storage key."""
        key_hash = hashlib.sha256(key.encode()).hexdigest()[:32]
        return self.storage_path / f"{key_hash}.json"

    def _read(self, key: str) -> Any:
        path = self._get_path(key)

        if not path.exists():
            logger.debug(f"No stored value for {key}")
            return None

        try:
            with open(path, "rb") as f:
                data = f.read()

            if self.cipher:
                data = self.cipher.decrypt(data)

            entry = json.loads(data.decode())

            # Guard against hash prefix collisions
            if entry.get("key") != key:
                logger.warning(f"Stored key mismatch for {key}")
                return None

            return entry.get("value")

        except (OSError, InvalidToken, ValueError) as e:
            logger.error(f"Failed to read stored value for {key}: {e}")
            return None

    def _write(self, key: str, value: Any) -> None:
        path = self._get_path(key)

        try:
            data = json.dumps({"key": key, "value": value}).encode()

            if self.cipher:
                data = self.cipher.encrypt(data)

            # Using os.open ensures permissions are set atomically during file creation
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(data)

        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save value for {key}: {e}")
            raise StorageError(f"Failed to save value for {key}: {e}") from e

        logger.debug(f"Saved value for {key}")

    def _delete(self, key: str) -> bool:
        path = self._get_path(key)

        if not path.exists():
            return False

        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete value for {key}: {e}")
            raise StorageError(f"Failed to delete value for {key}: {e}") from e

        logger.debug(f"Deleted value for {key}")
        return True

    # File I/O runs in a worker thread

    async def get(self, key: str) -> Any:
        """
        Retrieve a value from storage.

        Returns:
            The stored value, or None if missing or unreadable
        """
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        """
        Save a value to storage.

        Raises:
            StorageError: If the value cannot be serialized or written
        """
        await asyncio.to_thread(self._write, key, value)

    async def unset(self, key: str) -> bool:
        """
        Delete a value from storage.

        Returns:
            True if a stored value was removed
        """
        return await asyncio.to_thread(self._delete, key)

    @staticmethod
    def generate_encryption_key() -> str:
        """Generate a new Fernet encryption key."""
        return Fernet.generate_key().decode()
