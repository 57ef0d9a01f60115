"""Utility functions and classes."""

from .errors import (
    AuthorizationError,
    ConfigError,
    DiscoveryError,
    HandshakeTimeoutError,
    HttpError,
    InvalidDiscoveryDocumentError,
    RequestAbortedError,
    SmartLaunchError,
    StorageError,
    ValidationError,
)
from .helpers import get_access_token_expiration, get_path, jwt_decode, random_string

__all__ = [
    "SmartLaunchError",
    "ConfigError",
    "ValidationError",
    "DiscoveryError",
    "InvalidDiscoveryDocumentError",
    "AuthorizationError",
    "HttpError",
    "RequestAbortedError",
    "StorageError",
    "HandshakeTimeoutError",
    "get_access_token_expiration",
    "get_path",
    "jwt_decode",
    "random_string",
]
