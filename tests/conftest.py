"""Pytest configuration and fixtures for smart_launch tests."""

import tempfile
from pathlib import Path

import pytest
from fakes import APP_URL, AUTHORIZE_URL, FHIR_URL, TOKEN_URL, FakeFhirServer

from smart_launch.adapters.window_adapter import WindowAdapter
from smart_launch.models import LaunchState
from smart_launch.transport.http import HttpTransport
from smart_launch.window import Window


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fhir_server() -> FakeFhirServer:
    """Create an empty fake FHIR server."""
    return FakeFhirServer()


@pytest.fixture
def transport(fhir_server: FakeFhirServer) -> HttpTransport:
    """Create a transport that talks to the fake FHIR server."""
    return fhir_server.transport()


@pytest.fixture
def window() -> Window:
    """Create a top-level app window."""
    return Window(location=APP_URL)


@pytest.fixture
def make_adapter(transport: HttpTransport):
    """Create a WindowAdapter for a window's current page load."""

    def _make(win: Window) -> WindowAdapter:
        return WindowAdapter(win, transport=transport)

    return _make


@pytest.fixture
def stored_state() -> LaunchState:
    """Create the state authorize() would have persisted for a public client."""
    return LaunchState(
        client_id="abc",
        scope="launch patient/*.read",
        redirect_uri=APP_URL,
        server_url=FHIR_URL,
        authorize_uri=AUTHORIZE_URL,
        token_uri=TOKEN_URL,
    )
