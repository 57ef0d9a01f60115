"""SMART App Launch client.

Discovers a FHIR server's OAuth endpoints, sends the user through the
authorization code flow and turns the result into an authenticated Session.
"""

import logging

from .adapters import AiohttpAdapter, BaseAdapter, WindowAdapter
from .api import SmartApi
from .client import Session
from .core.logging_config import setup_logging
from .models import SMART_KEY, LaunchState, NavigatingAway, NavigationKind
from .oauth import AuthorizeParams, authorize, complete_auth, get_client, init, ready
from .utils.errors import (
    AuthorizationError,
    ConfigError,
    DiscoveryError,
    HandshakeTimeoutError,
    HttpError,
    SmartLaunchError,
    ValidationError,
)
from .window import Window

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "AiohttpAdapter",
    "AuthorizationError",
    "AuthorizeParams",
    "BaseAdapter",
    "ConfigError",
    "DiscoveryError",
    "HandshakeTimeoutError",
    "HttpError",
    "LaunchState",
    "NavigatingAway",
    "NavigationKind",
    "SMART_KEY",
    "Session",
    "SmartApi",
    "SmartLaunchError",
    "ValidationError",
    "Window",
    "WindowAdapter",
    "authorize",
    "complete_auth",
    "get_client",
    "init",
    "ready",
    "setup_logging",
]
