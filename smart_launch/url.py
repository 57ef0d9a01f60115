"""Mutable view of the current page URL."""

import httpx


class LaunchUrl:
    """The current URL with mutable query parameters.

    Adapters hand out a single instance per page load so that parameters
    removed by one step (``complete``, ``code``, ``state``) stay removed for
    the next.
    """

    def __init__(self, href: str):
        self._url = httpx.URL(href)

    def __str__(self) -> str:
        return self.href

    def __repr__(self) -> str:
        return f"LaunchUrl({self.href!r})"

    @property
    def href(self) -> str:
        return str(self._url)

    @property
    def origin(self) -> str:
        """Scheme, host and (non-default) port, e.g. ``https://app.example``."""
        return f"{self._url.scheme}://{self._url.netloc.decode('ascii')}"

    def get(self, name: str) -> str | None:
        return self._url.params.get(name)

    def has(self, name: str) -> bool:
        return name in self._url.params

    def set(self, name: str, value: str) -> None:
        self._url = self._url.copy_set_param(name, value)

    def delete(self, name: str) -> None:
        if name in self._url.params:
            self._url = self._url.copy_remove_param(name)

    def join(self, path: str) -> str:
        """Resolve ``path`` against this URL."""
        return str(self._url.join(path))


def origin_of(href: str) -> str:
    """Return the origin of an absolute URL."""
    return LaunchUrl(href).origin
