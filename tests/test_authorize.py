"""Tests for starting the SMART launch sequence."""

import logging
import re
from urllib.parse import quote

import httpx
import pytest
from fakes import (
    APP_URL,
    AUTHORIZE_URL,
    FHIR_URL,
    METADATA_URL,
    TOKEN_URL,
    FakeFhirServer,
    conformance_statement,
)

from smart_launch.models import SMART_KEY, LaunchState, NavigatingAway, NavigationKind
from smart_launch.oauth.handshake import POPUP_NAME
from smart_launch.oauth.launch import AuthorizeParams, authorize, build_authorize_url, pick_config
from smart_launch.utils.errors import ConfigError, DiscoveryError
from smart_launch.window import Window

EHR_LAUNCH_URL = f"{APP_URL}?iss={quote(FHIR_URL, safe='')}&launch=xyz123"


async def load_state(win: Window) -> tuple[str, LaunchState]:
    """Return the SMART_KEY alias and the state it points at."""
    key = await win.session_storage.get(SMART_KEY)
    return key, LaunchState.from_storage(await win.session_storage.get(key))


class TestBuildAuthorizeUrl:
    """Tests for build_authorize_url."""

    def test_parameters_in_order(self):
        """Test the query parameters and their encoding."""
        url = build_authorize_url(
            AUTHORIZE_URL, "abc", "launch openid", APP_URL, FHIR_URL, "K", launch="L1"
        )

        assert url == (
            f"{AUTHORIZE_URL}?response_type=code&client_id=abc&scope=launch%20openid"
            "&redirect_uri=https%3A%2F%2Fapp.example%2Findex.html"
            "&aud=https%3A%2F%2Fehr.example%2Ffhir&state=K&launch=L1"
        )

    def test_no_launch_parameter_for_standalone(self):
        """Test the launch parameter is omitted when there is none."""
        url = build_authorize_url(AUTHORIZE_URL, "abc", "openid", APP_URL, FHIR_URL, "K")
        assert "launch=" not in url


class TestPickConfig:
    """Tests for selecting one of several configurations."""

    def test_string_regex_and_callable(self):
        """Test every kind of iss_match."""
        configs = [
            AuthorizeParams(client_id="exact", iss_match="https://other.example/fhir"),
            AuthorizeParams(client_id="regex", iss_match=re.compile(r"ehr\.example")),
            AuthorizeParams(client_id="callable", iss_match=lambda iss: True),
        ]

        assert pick_config(configs, "https://other.example/fhir").client_id == "exact"
        assert pick_config(configs, FHIR_URL).client_id == "regex"
        assert pick_config(configs, "https://third.example").client_id == "callable"

    def test_no_match(self):
        """Test a ConfigError when nothing matches."""
        configs = [AuthorizeParams(client_id="a", iss_match="https://other.example")]

        with pytest.raises(ConfigError, match="No configuration found matching"):
            pick_config(configs, FHIR_URL)


class TestAuthorize:
    """Tests for authorize()."""

    @pytest.mark.asyncio
    async def test_standalone_launch_redirects_to_auth_server(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test the authorization redirect for a standalone launch."""
        fhir_server.add_well_known()

        outcome = await authorize(
            make_adapter(window),
            AuthorizeParams(client_id="abc", scope="launch patient/*.read", iss=FHIR_URL),
        )

        assert isinstance(outcome, NavigatingAway)
        assert outcome.kind == NavigationKind.REDIRECT
        assert window.location == outcome.url

        url = httpx.URL(outcome.url)
        assert url.host == "ehr.example"
        assert url.path == "/auth"
        query = outcome.url.split("?", 1)[1]
        assert query.startswith(
            "response_type=code&client_id=abc&scope=launch%20patient%2F%2A.read&redirect_uri="
        )
        assert "&aud=https%3A%2F%2Fehr.example%2Ffhir&state=" in query

        key, state = await load_state(window)
        assert re.fullmatch(r"[A-Za-z0-9]{16}", key)
        assert url.params["state"] == key
        assert state.server_url == FHIR_URL
        assert state.authorize_uri == AUTHORIZE_URL
        assert state.token_uri == TOKEN_URL
        assert state.redirect_uri == "https://app.example/"
        assert state.token_response == {}

    @pytest.mark.asyncio
    async def test_each_launch_gets_a_new_state_key(
        self, fhir_server: FakeFhirServer, make_adapter
    ):
        """Test two launches never share a state key."""
        fhir_server.add_well_known()
        keys = []

        for _ in range(2):
            win = Window(location=APP_URL)
            outcome = await authorize(
                make_adapter(win), AuthorizeParams(client_id="abc", iss=FHIR_URL)
            )
            keys.append(httpx.URL(outcome.url).params["state"])

        assert keys[0] != keys[1]

    @pytest.mark.asyncio
    async def test_ehr_launch_adds_launch_scope_and_parameter(
        self, fhir_server: FakeFhirServer, make_adapter
    ):
        """Test the launch token is forwarded and requested as a scope."""
        fhir_server.add_well_known()
        win = Window(location=EHR_LAUNCH_URL)

        outcome = await authorize(
            make_adapter(win), AuthorizeParams(client_id="abc", scope="patient/*.read")
        )

        params = httpx.URL(outcome.url).params
        assert params["launch"] == "xyz123"
        assert params["scope"] == "patient/*.read launch"
        assert params["aud"] == FHIR_URL

    @pytest.mark.asyncio
    async def test_launch_scope_not_duplicated(self, fhir_server: FakeFhirServer, make_adapter):
        """Test an existing launch scope is kept as is."""
        fhir_server.add_well_known()
        win = Window(location=EHR_LAUNCH_URL)

        outcome = await authorize(
            make_adapter(win), AuthorizeParams(client_id="abc", scope="launch openid")
        )

        assert httpx.URL(outcome.url).params["scope"] == "launch openid"

    @pytest.mark.asyncio
    async def test_url_iss_overrides_option(self, fhir_server: FakeFhirServer, make_adapter):
        """Test the iss url parameter takes precedence over the option."""
        fhir_server.add_well_known()
        win = Window(location=EHR_LAUNCH_URL)

        await authorize(
            make_adapter(win),
            AuthorizeParams(client_id="abc", iss="https://ignored.example/fhir"),
        )

        _, state = await load_state(win)
        assert state.server_url == FHIR_URL

    @pytest.mark.asyncio
    async def test_relative_redirect_uri(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test relative redirect URIs are resolved against the page."""
        fhir_server.add_well_known()

        await authorize(
            make_adapter(window),
            AuthorizeParams(client_id="abc", iss=FHIR_URL, redirect_uri="callback.html"),
        )

        _, state = await load_state(window)
        assert state.redirect_uri == "https://app.example/callback.html"

    @pytest.mark.asyncio
    async def test_multiple_configs(self, fhir_server: FakeFhirServer, make_adapter):
        """Test the configuration matching the iss parameter is used."""
        fhir_server.add_well_known()
        win = Window(location=EHR_LAUNCH_URL)

        outcome = await authorize(
            make_adapter(win),
            [
                AuthorizeParams(client_id="other", iss_match="https://other.example/fhir"),
                AuthorizeParams(client_id="ehr", iss_match=re.compile(r"^https://ehr\.")),
            ],
        )

        assert httpx.URL(outcome.url).params["client_id"] == "ehr"

    @pytest.mark.asyncio
    async def test_multiple_configs_require_iss(self, window: Window, make_adapter):
        """Test multiple configurations need an iss url parameter."""
        with pytest.raises(ConfigError, match='"iss" url parameter is required'):
            await authorize(make_adapter(window), [AuthorizeParams(client_id="a")])

    @pytest.mark.asyncio
    async def test_no_server_url(self, window: Window, make_adapter):
        """Test a ConfigError when neither iss nor fhirServiceUrl is known."""
        with pytest.raises(ConfigError, match="No server url found"):
            await authorize(make_adapter(window), AuthorizeParams(client_id="abc"))

        assert len(window.session_storage) == 0

    @pytest.mark.asyncio
    async def test_multiple_mode_skips_smart_key(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test the singular alias is not written in multiple mode."""
        fhir_server.add_well_known()

        outcome = await authorize(
            make_adapter(window), AuthorizeParams(client_id="abc", iss=FHIR_URL, multiple=True)
        )

        key = httpx.URL(outcome.url).params["state"]
        assert SMART_KEY not in window.session_storage
        assert LaunchState.from_storage(await window.session_storage.get(key)).multiple is True

    @pytest.mark.asyncio
    async def test_fake_launch_skips_oauth(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test fhirServiceUrl without iss goes straight to the redirect_uri."""
        outcome = await authorize(
            make_adapter(window),
            AuthorizeParams(
                fhir_service_url=FHIR_URL,
                redirect_uri="https://app.example/app.html",
                patient_id="p1",
                encounter_id="e1",
                fake_token_response={"access_token": "fake"},
            ),
        )

        key, state = await load_state(window)
        assert outcome.url == f"https://app.example/app.html?state={key}"
        assert fhir_server.requests == []
        assert state.token_response == {"access_token": "fake", "patient": "p1", "encounter": "e1"}

    @pytest.mark.asyncio
    async def test_open_server_redirects_with_state_only(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test an open server skips the authorization request."""
        fhir_server.add(METADATA_URL, json={"resourceType": "CapabilityStatement"})

        outcome = await authorize(
            make_adapter(window),
            AuthorizeParams(client_id="abc", iss=FHIR_URL, redirect_uri=APP_URL),
        )

        key, _ = await load_state(window)
        assert outcome.url == f"{APP_URL}?state={key}"
        assert "response_type" not in outcome.url

    @pytest.mark.asyncio
    async def test_conformance_statement_discovery(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test endpoints discovered from the CapabilityStatement are used."""
        fhir_server.add(METADATA_URL, json=conformance_statement())

        outcome = await authorize(
            make_adapter(window), AuthorizeParams(client_id="abc", iss=FHIR_URL)
        )

        assert outcome.url.startswith(f"{AUTHORIZE_URL}?")

    @pytest.mark.asyncio
    async def test_no_redirect_returns_url(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter
    ):
        """Test no_redirect returns the URL without navigating."""
        fhir_server.add_well_known()

        outcome = await authorize(
            make_adapter(window),
            AuthorizeParams(client_id="abc", iss=FHIR_URL, no_redirect=True),
        )

        assert isinstance(outcome, str)
        assert outcome.startswith(f"{AUTHORIZE_URL}?response_type=code")
        assert window.location == APP_URL

    @pytest.mark.asyncio
    async def test_discovery_failure_keeps_persisted_state(self, window: Window, make_adapter):
        """Test the state is stored before discovery is attempted."""
        with pytest.raises(DiscoveryError):
            await authorize(make_adapter(window), AuthorizeParams(client_id="abc", iss=FHIR_URL))

        key, state = await load_state(window)
        assert key
        assert state.server_url == FHIR_URL
        assert state.authorize_uri is None
        assert window.location == APP_URL

    @pytest.mark.asyncio
    async def test_frame_warning_defaults_to_complete_in_target(
        self, fhir_server: FakeFhirServer, window: Window, make_adapter, caplog
    ):
        """Test a framed app is warned and completes in the frame."""
        fhir_server.add_well_known()
        frame = window.add_frame("app", APP_URL)

        with caplog.at_level(logging.WARNING, logger="smart_launch.oauth.launch"):
            await authorize(make_adapter(frame), AuthorizeParams(client_id="abc", iss=FHIR_URL))

        assert "complete_in_target" in caplog.text
        _, state = await load_state(frame)
        assert state.complete_in_target is True


class TestAuthorizeInTarget:
    """Tests for authorizing in another window."""

    @pytest.mark.asyncio
    async def test_popup(self, fhir_server: FakeFhirServer, window: Window, make_adapter):
        """Test the popup gets the state and the authorization URL."""
        fhir_server.add_well_known()
        opened = []
        original_open = window.open

        def record_open(*args, **kwargs):
            popup = original_open(*args, **kwargs)
            opened.append(popup)
            return popup

        window.open = record_open

        outcome = await authorize(
            make_adapter(window),
            AuthorizeParams(client_id="abc", iss=FHIR_URL, target="popup"),
        )

        popup = opened[0]
        key = httpx.URL(outcome.url).params["state"]
        assert outcome.kind == NavigationKind.TARGET_WINDOW
        assert popup.name == POPUP_NAME
        assert popup.location == outcome.url
        assert await popup.session_storage.get(key) == await window.session_storage.get(key)
        assert window.location == APP_URL
        assert outcome.listener is not None
        assert outcome.listener.installed is True

    @pytest.mark.asyncio
    async def test_blocked_popup_falls_back_to_self(
        self, fhir_server: FakeFhirServer, make_adapter
    ):
        """Test a blocked popup redirects the current window instead."""
        fhir_server.add_well_known()
        win = Window(location=APP_URL, popups_blocked=True)

        outcome = await authorize(
            make_adapter(win),
            AuthorizeParams(client_id="abc", iss=FHIR_URL, target="popup"),
        )

        assert outcome.kind == NavigationKind.REDIRECT
        assert win.location == outcome.url
        assert win.messages.listeners == []

    @pytest.mark.asyncio
    async def test_named_frame(self, fhir_server: FakeFhirServer, window: Window, make_adapter):
        """Test a frame name resolves to that frame."""
        fhir_server.add_well_known()
        frame = window.add_frame("auth", "about:blank")

        outcome = await authorize(
            make_adapter(window),
            AuthorizeParams(client_id="abc", iss=FHIR_URL, target="auth"),
        )

        assert outcome.kind == NavigationKind.TARGET_WINDOW
        assert frame.location == outcome.url
