"""HTTP transport and request cancellation."""

from .abort import AbortController, AbortSignal
from .http import HttpTransport, humanize_error

__all__ = ["AbortController", "AbortSignal", "HttpTransport", "humanize_error"]
