"""Persisted launch state and state machine outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .utils.errors import ConfigError

if TYPE_CHECKING:
    from .oauth.handshake import CompletionListener

# Storage key that aliases the state key of the current (single) launch
SMART_KEY = "SMART_KEY"


class LaunchState(BaseModel):
    """Everything persisted about one authorization attempt."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    client_id: str | None = Field(None, description="OAuth client ID")
    scope: str = Field(default="", description="Space-separated scopes requested")
    redirect_uri: str = Field(..., description="Absolute redirect URI")
    server_url: str = Field(..., min_length=1, description="FHIR server base URL")
    client_secret: str | None = Field(None, description="Secret for confidential clients")
    authorize_uri: str | None = Field(None, description="Authorization endpoint")
    token_uri: str | None = Field(None, description="Token endpoint")
    registration_uri: str | None = Field(None, description="Dynamic registration endpoint")
    token_response: dict[str, Any] = Field(
        default_factory=dict, description="Token endpoint response, extra fields preserved"
    )
    expires_at: int | None = Field(None, description="Access token expiry (epoch seconds)")
    multiple: bool | None = Field(None, description="Multi-launch mode (no SMART_KEY alias)")
    complete_in_target: bool | None = Field(
        None, description="Complete authorization inside the popup or frame"
    )

    @property
    def is_authorized(self) -> bool:
        """Check if an access token has already been obtained."""
        return bool(self.token_response.get("access_token"))

    def to_storage(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict for storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_storage(cls, data: Any) -> "LaunchState | None":
        """Load from a stored value. Returns None if nothing is stored.

        Raises:
            ConfigError: If the stored value is not a valid launch state
        """
        if data is None:
            return None
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(
                f"Invalid launch state in storage. Please (re)launch the app. {e}"
            ) from e


class NavigationKind(str, Enum):
    """How control left the current page."""

    REDIRECT = "redirect"  # current location navigated
    TARGET_WINDOW = "target_window"  # popup, frame or named window navigated
    PARENT_MESSAGE = "parent_message"  # completeAuth posted to parent/opener
    DEFERRED = "deferred"  # no_redirect, the caller navigates


@dataclass
class NavigatingAway:
    """Terminal outcome of the launch state machine.

    Returned instead of a session when the authorization continues in another
    page or window. Nothing further should run in the current page lifetime.
    """

    url: str
    kind: NavigationKind = NavigationKind.REDIRECT
    listener: "CompletionListener | None" = None
