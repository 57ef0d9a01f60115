"""Authenticated session produced by a completed (or revived) launch."""

import inspect
import logging
import time
from collections.abc import Awaitable, Callable

from .models import LaunchState

logger = logging.getLogger(__name__)

SaveCallback = Callable[[LaunchState], Awaitable[None] | None]


class Session:
    """A launch state plus a callback that persists changes to it.

    Resource queries against the FHIR server build on top of this object.
    """

    def __init__(self, state: LaunchState, save: SaveCallback | None = None):
        self.state = state
        self._save = save

    def __repr__(self) -> str:
        return f"Session(server_url={self.server_url!r}, patient_id={self.patient_id!r})"

    @property
    def server_url(self) -> str:
        return self.state.server_url

    @property
    def access_token(self) -> str | None:
        return self.state.token_response.get("access_token")

    @property
    def patient_id(self) -> str | None:
        return self.state.token_response.get("patient")

    @property
    def encounter_id(self) -> str | None:
        return self.state.token_response.get("encounter")

    def is_expired(self, buffer_seconds: int = 0) -> bool:
        """Check if the access token is expired or will expire soon.

        Args:
            buffer_seconds: Consider token expired if it expires within this many seconds

        Returns:
            True if expired; False if there is no expiry information
        """
        if self.state.expires_at is None:
            return False
        return time.time() >= self.state.expires_at - buffer_seconds

    def get_authorization_header(self) -> str | None:
        """Return ``"Bearer <token>"`` or None when there is no access token."""
        if not self.access_token:
            return None
        return f"Bearer {self.access_token}"

    async def save(self) -> None:
        """Persist the current state through the save callback."""
        if self._save is None:
            logger.debug("Session has no save callback; state not persisted")
            return
        result = self._save(self.state)
        if inspect.isawaitable(result):
            await result
