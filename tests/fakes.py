"""Fake FHIR server and shared constants for smart_launch tests."""

import asyncio
from typing import Any

import httpx

from smart_launch.oauth.discovery import OAUTH_URIS_EXTENSION
from smart_launch.transport.http import HttpTransport

APP_URL = "https://app.example/index.html"
FHIR_URL = "https://ehr.example/fhir"
AUTHORIZE_URL = "https://ehr.example/auth"
TOKEN_URL = "https://ehr.example/token"
WELL_KNOWN_URL = f"{FHIR_URL}/.well-known/smart-configuration"
METADATA_URL = f"{FHIR_URL}/metadata"


class FakeFhirServer:
    """Routes requests made through httpx.MockTransport to canned responses.

    Unknown URLs answer 404, so the discovery race is decided by whichever
    document a test registers.
    """

    def __init__(self) -> None:
        self.routes: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        json: Any = None,
        status: int = 200,
        text: str | None = None,
        delay: float = 0,
    ) -> None:
        self.routes[url] = {"json": json, "status": status, "text": text, "delay": delay}

    def add_well_known(self, **overrides: Any) -> None:
        document = {"authorization_endpoint": AUTHORIZE_URL, "token_endpoint": TOKEN_URL}
        document.update(overrides)
        self.add(WELL_KNOWN_URL, json=document)

    def add_token(self, **token_response: Any) -> None:
        self.add(TOKEN_URL, json=token_response or {"access_token": "tok123"})

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).split("?")[0] == url]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url).split("?")[0])
        if route is None:
            return httpx.Response(404, text="Not Found")

        if route["delay"]:
            await asyncio.sleep(route["delay"])
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"])
        return httpx.Response(route["status"], json=route["json"])

    def transport(self) -> HttpTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return HttpTransport(client=client)


def conformance_statement(
    authorize: str | None = AUTHORIZE_URL,
    token: str | None = TOKEN_URL,
    register: str | None = None,
) -> dict[str, Any]:
    """Build a CapabilityStatement carrying the SMART oauth-uris extension."""
    uris = [
        {"url": name, "valueUri": value}
        for name, value in (("register", register), ("authorize", authorize), ("token", token))
        if value
    ]
    return {
        "resourceType": "CapabilityStatement",
        "rest": [
            {
                "security": {
                    "extension": [{"url": OAUTH_URIS_EXTENSION, "extension": uris}],
                }
            }
        ],
    }


