"""
Shared test fixtures for the MCP server test suite.

Key fixtures:
- make_settings: A factory for JumpServerSettings with test credentials
- fake_jumpserver: An in-memory JumpServer API behind an httpx.MockTransport
- make_client: A factory for JumpServerClient wired to the fake JumpServer

Testing approach:
- test_signing.py / test_config.py: Pure unit tests, no HTTP at all.
- test_client.py / test_credentials.py: The real client sends real httpx
  requests, but httpx.MockTransport answers them in-process. The fake records
  every request so tests can check the signed path, headers and body.
- test_server.py: Integration tests through the FastMCP ASGI app.
"""

import json

import httpx
import pytest

from jumpserver_mcp.client import JumpServerClient
from jumpserver_mcp.config import JumpServerSettings

TEST_KEY_ID = "test-key-id"
TEST_SECRET = "test-secret"
TEST_BASE_URL = "https://jms.example.com"
TEST_ORG_ID = "00000000-0000-0000-0000-000000000002"

# Fixed clock: 2026-10-19 10:00:00 UTC
FIXED_TIME = 1792404000.0


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real JUMPSERVER_* variables from leaking into tests."""
    for name in (
        "JUMPSERVER_ACCESS_KEY_ID",
        "JUMPSERVER_ACCESS_KEY_SECRET",
        "JUMPSERVER_BASE_URL",
        "JUMPSERVER_BASE_PATH",
        "JUMPSERVER_ORG_ID",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings():
    """
    Factory fixture for JumpServerSettings.

    Usage in tests:
        def test_something(make_settings):
            settings = make_settings(org_id=None)
    """

    def _make_settings(**overrides) -> JumpServerSettings:
        values = {
            "access_key_id": TEST_KEY_ID,
            "access_key_secret": TEST_SECRET,
            "base_url": TEST_BASE_URL,
            "org_id": TEST_ORG_ID,
        }
        values.update(overrides)
        return JumpServerSettings(_env_file=None, **values)

    return _make_settings


class FakeJumpServer:
    """
    In-memory stand-in for the three JumpServer endpoints.

    Responses are plain attributes so tests can replace them:
        fake.assets = []                     -> empty search result
        fake.endpoint = {"mysql_port": 3306} -> endpoint without host
        fake.responses[path] = httpx.Response(...) -> full override
    """

    def __init__(self):
        self.assets = [
            {"id": "a1", "name": "DB-ltc-prod", "db_name": "appdb", "org_id": TEST_ORG_ID},
        ]
        self.token = {
            "id": "u1",
            "value": "pw1",
            "expire_time": 3600,
            "date_expired": "2099-01-01",
            "org_id": TEST_ORG_ID,
        }
        self.endpoint = {"host": "10.0.0.5", "mysql_port": 3306}
        self.responses: dict[str, httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.responses:
            return self.responses[path]
        if path.endswith("/assets/databases/suggestions/"):
            return httpx.Response(200, json=self.assets)
        if path.endswith("/authentication/connection-token/"):
            return httpx.Response(201, json=self.token)
        if path.endswith("/terminal/endpoints/smart/"):
            return httpx.Response(200, json=self.endpoint)
        return httpx.Response(404, json={"detail": "Not found."})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def json_body(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def fake_jumpserver():
    return FakeJumpServer()


@pytest.fixture
def make_client(make_settings, fake_jumpserver):
    """
    Factory fixture returning a JumpServerClient that talks to fake_jumpserver.

    Settings overrides are passed through to make_settings.
    """

    def _make_client(**overrides) -> JumpServerClient:
        return JumpServerClient(
            make_settings(**overrides),
            transport=fake_jumpserver.transport(),
            clock=lambda: FIXED_TIME,
        )

    return _make_client
