"""Error types for the SMART launch client."""


class SmartLaunchError(Exception):
    """Base exception for SMART launch errors."""

    pass


class ConfigError(SmartLaunchError):
    """Raised when launch configuration or persisted state is missing or invalid."""

    pass


class ValidationError(SmartLaunchError):
    """Raised when a server response does not have the expected shape."""

    pass


class DiscoveryError(SmartLaunchError):
    """Raised when OAuth endpoint discovery fails.

    When raised by the discovery race, ``errors`` holds the individual
    failures in task order.
    """

    def __init__(self, message: str, errors: list[BaseException] | None = None):
        super().__init__(message)
        self.errors = errors or []


class InvalidDiscoveryDocumentError(DiscoveryError, ValidationError):
    """Raised when a discovery document lacks required endpoints."""

    def __init__(self, message: str = "Invalid wellKnownJson"):
        super().__init__(message)


class AuthorizationError(SmartLaunchError):
    """Raised when the authorization server reports a denial."""

    def __init__(self, error: str | None, error_description: str | None = None):
        self.error = error
        self.error_description = error_description
        message = ": ".join(part for part in (error, error_description) if part)
        super().__init__(message or "Authorization failed")


class HttpError(SmartLaunchError):
    """Raised when an HTTP request returns a non-2xx status."""

    def __init__(self, message: str, status: int, status_text: str = ""):
        super().__init__(message)
        self.status = status
        self.status_text = status_text


class RequestAbortedError(SmartLaunchError):
    """Raised when an in-flight request is cancelled through its abort signal."""

    pass


class StorageError(SmartLaunchError):
    """Raised when launch state cannot be written."""

    pass


class HandshakeTimeoutError(SmartLaunchError):
    """Raised when a popup or frame never posts its completion message."""

    def __init__(self, timeout: float):
        super().__init__(f"No completeAuth message received within {timeout} seconds")
        self.timeout = timeout
