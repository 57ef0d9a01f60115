"""HTTP transport used for discovery and token requests.

This module wraps httpx with the conventions the launch state machine relies
on: JSON accept header, human-readable errors for non-2xx responses, and
cancellation through an AbortSignal.
"""

import asyncio
import json
import logging
import re
from typing import Any

import httpx

from ..core.config import settings
from ..utils.errors import HttpError, RequestAbortedError
from .abort import AbortSignal

logger = logging.getLogger(__name__)

_JSON_TYPE = re.compile(r"\bjson\b", re.IGNORECASE)
_TEXT_TYPE = re.compile(r"^text/", re.IGNORECASE)


def humanize_error(response: httpx.Response) -> HttpError:
    """Build an HttpError describing a failed response.

    Parses OAuth error responses (RFC 6749 Section 5.2) when the body is JSON,
    otherwise appends the raw text.
    """
    message = f"{response.status_code} {response.reason_phrase}\nURL: {response.url}"
    content_type = response.headers.get("content-type", "text/plain")

    try:
        if _JSON_TYPE.search(content_type):
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                message += "\n" + str(body["error"])
                if body.get("error_description"):
                    message += ": " + str(body["error_description"])
            else:
                message += "\n\n" + json.dumps(body, indent=4)
        elif _TEXT_TYPE.search(content_type) and response.text:
            message += "\n\n" + response.text
    except ValueError:
        # Body claimed to be JSON but was not; the status line is enough
        pass

    return HttpError(message, response.status_code, response.reason_phrase)


class HttpTransport:
    """Sends requests and maps responses to parsed bodies or HttpError."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float | None = None):
        """Initialize transport.

        Args:
            client: Shared httpx client (default: a new client per request)
            timeout: Request timeout in seconds (default: settings.request_timeout)
        """
        self._client = client
        self.timeout = settings.request_timeout if timeout is None else timeout

    async def _send(
        self, method: str, url: str, headers: dict[str, str], body: str | bytes | None
    ) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, headers=headers, content=body)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(method, url, headers=headers, content=body)
            await response.aread()
            return response

    async def request(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: str | bytes | None = None,
        signal: AbortSignal | None = None,
    ) -> Any:
        """Send a request and return the parsed response body.

        Args:
            url: Absolute request URL
            method: HTTP method (default: GET)
            headers: Extra headers, merged over ``accept: application/json``
            body: Raw request body
            signal: Abort signal that cancels the request when triggered

        Returns:
            Parsed JSON for JSON responses ("" for an empty body), text for
            ``text/*`` responses, otherwise the httpx.Response itself

        Raises:
            HttpError: If the response status is not 2xx
            RequestAbortedError: If the signal aborted the request
            httpx.HTTPError: On network failures
        """
        if signal is not None and signal.aborted:
            raise RequestAbortedError(f"Request to {url} was aborted")

        merged_headers = {"accept": "application/json", **(headers or {})}
        call = asyncio.ensure_future(self._send(method, url, merged_headers, body))

        if signal is not None:
            signal.add_listener(call.cancel)
        try:
            response = await call
        except asyncio.CancelledError:
            if signal is not None and signal.aborted:
                raise RequestAbortedError(f"Request to {url} was aborted") from None
            raise
        finally:
            if signal is not None:
                signal.remove_listener(call.cancel)

        logger.debug(f"{method} {url} -> {response.status_code}")

        if not response.is_success:
            raise humanize_error(response)

        content_type = response.headers.get("content-type", "")
        if _JSON_TYPE.search(content_type):
            return response.json() if response.content else ""
        if _TEXT_TYPE.search(content_type):
            return response.text
        return response
