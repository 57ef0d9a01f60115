"""Small shared helpers used across the launch state machine."""

import logging
import secrets
import string
import time
from collections.abc import Mapping, Sequence
from typing import Any

import jwt

from ..core.config import settings

logger = logging.getLogger(__name__)

ALPHANUMERIC = string.ascii_uppercase + string.ascii_lowercase + string.digits


def random_string(length: int = 8, charset: str = ALPHANUMERIC) -> str:
    """Generate a random string using a cryptographically secure source.

    Args:
        length: Number of characters (default: 8)
        charset: Characters to pick from (default: upper and lower case letters plus digits)

    Returns:
        Random string of the requested length
    """
    return "".join(secrets.choice(charset) for _ in range(length))


def get_path(obj: Any, path: str = "") -> Any:
    """Walk a nested structure along a dot-separated path like ``"rest.0.security"``.

    Integer segments index into sequences. Returns None on any dead end.
    """
    path = path.strip()
    if not path:
        return obj

    out = obj
    for key in path.split("."):
        if isinstance(out, Mapping):
            out = out.get(key)
        elif isinstance(out, Sequence) and not isinstance(out, str) and key.isdigit():
            index = int(key)
            out = out[index] if index < len(out) else None
        else:
            return None
        if out is None:
            return None
    return out


def jwt_decode(token: str) -> dict[str, Any] | None:
    """Decode the payload of a JWT without verifying it.

    Returns None if the token is not a decodable JWT.
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.DecodeError as e:
        logger.debug(f"Could not decode access token as JWT: {e}")
        return None


def _as_seconds(value: Any) -> int | None:
    """Parse a numeric claim like 3600 or "3600.0"; None if unparsable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Ignoring non-numeric token lifetime {value!r}")
        return None


def get_access_token_expiration(
    token_response: Mapping[str, Any], now: int | None = None
) -> int:
    """Compute when an access token expires, in epoch seconds.

    Uses ``expires_in`` when the server sends it, then the ``exp`` claim of the
    access token if it is a JWT, and finally falls back to the configured
    default lifetime.
    """
    now = int(time.time()) if now is None else now

    expires_in = _as_seconds(token_response.get("expires_in"))
    if expires_in:
        return now + expires_in

    access_token = token_response.get("access_token")
    if isinstance(access_token, str):
        claims = jwt_decode(access_token)
        exp = _as_seconds(claims.get("exp")) if claims else None
        if exp:
            return exp

    return now + settings.default_token_lifetime
