"""Authorization code exchange (RFC 6749 Section 4.1.3)."""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from ..models import LaunchState
from ..transport.http import HttpTransport
from ..utils.errors import ConfigError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class TokenRequest:
    """A prepared token request. Building it does not send anything."""

    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def build_token_request(code: str, state: LaunchState) -> TokenRequest:
    """Build the request that exchanges ``code`` for an access token.

    For public apps, authentication is not possible (and thus not required),
    since a client with no secret cannot prove its identity; the client_id is
    sent in the body instead. Confidential apps authenticate with HTTP Basic
    using client_id and client_secret.

    Raises:
        ConfigError: If redirect_uri, token_uri or client_id is missing
    """
    if not state.redirect_uri:
        raise ConfigError("Missing state.redirect_uri")
    if not state.token_uri:
        raise ConfigError("Missing state.token_uri")
    if not state.client_id:
        raise ConfigError("Missing state.client_id")

    token_request = TokenRequest(
        headers={"content-type": "application/x-www-form-urlencoded"},
        body=(
            f"code={quote(code, safe='')}&grant_type=authorization_code"
            f"&redirect_uri={quote(state.redirect_uri, safe='')}"
        ),
    )

    if state.client_secret:
        credentials = f"{state.client_id}:{state.client_secret}".encode()
        token_request.headers["authorization"] = "Basic " + base64.b64encode(credentials).decode()
        logger.debug("Using client secret to construct the authorization header")
    else:
        logger.debug("No client secret found in state. Adding the client_id to the POST body")
        token_request.body += f"&client_id={quote(state.client_id, safe='')}"

    return token_request


async def get_access_token(
    transport: HttpTransport, code: str, state: LaunchState
) -> dict[str, Any]:
    """Exchange an authorization code for a token response.

    Returns:
        The token response exactly as the server sent it (patient, encounter,
        refresh_token and other extra fields included)

    Raises:
        ConfigError: If the state lacks the fields needed for the request
        ValidationError: If the response contains no access_token
        HttpError: If the token endpoint rejects the request
    """
    logger.debug("Preparing to exchange the code for access token...")
    token_request = build_token_request(code, state)

    token_response = await transport.request(
        state.token_uri,
        method=token_request.method,
        headers=token_request.headers,
        body=token_request.body,
    )

    if not isinstance(token_response, dict) or not token_response.get("access_token"):
        raise ValidationError("Failed to obtain access token.")

    logger.debug(f"Token response fields: {sorted(token_response)}")
    return token_response
