"""SMART App Launch authorization flow."""

from .completion import clean_up_url, complete_auth
from .discovery import DiscoveryCache, EndpointDiscoverer, OAuthEndpoints
from .handshake import CompletionListener, get_target_window
from .launch import AuthorizeParams, authorize, build_authorize_url
from .race import DiscoveryTask, any_success
from .revival import init, ready
from .sessions import get_client
from .token_exchange import TokenRequest, build_token_request, get_access_token

__all__ = [
    "AuthorizeParams",
    "CompletionListener",
    "DiscoveryCache",
    "DiscoveryTask",
    "EndpointDiscoverer",
    "OAuthEndpoints",
    "TokenRequest",
    "any_success",
    "authorize",
    "build_authorize_url",
    "build_token_request",
    "clean_up_url",
    "complete_auth",
    "get_access_token",
    "get_client",
    "get_target_window",
    "init",
    "ready",
]
