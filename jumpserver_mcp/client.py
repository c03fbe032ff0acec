"""
Signed HTTP client for the JumpServer REST API.

One JumpServerClient is created at startup from the frozen JumpServerSettings
and shared by all tool calls. It holds no connection state: each request opens
its own httpx.AsyncClient, sends exactly one signed request (no retries) and
closes it again.

Request flow:
    1. Check configuration (key pair, base URL, organization id)
    2. Build "{base_path}{path}?{sorted query}"
    3. Sign it (see signing.py) with a fresh Date header
    4. Send, then decode JSON or text and raise on non-2xx
"""

import json
import logging
import time
from typing import Any, Callable
from urllib.parse import urlencode, urljoin

import httpx

from jumpserver_mcp.config import JumpServerSettings
from jumpserver_mcp.errors import ConfigurationError, JumpServerAPIError
from jumpserver_mcp.signing import build_signed_headers, http_date

logger = logging.getLogger("mcp-jumpserver.client")


def normalize_api_path(path: str | None) -> str:
    if not path:
        return "/"
    return path if path.startswith("/") else f"/{path}"


def build_query_string(params: dict[str, Any] | None) -> str:
    """
    Encode query parameters deterministically.

    Entries whose value is None or "" are dropped, the rest are stringified
    and sorted by key: {"b": "2", "a": "1", "c": ""} -> "a=1&b=2".
    """
    entries = [
        (key, str(value))
        for key, value in (params or {}).items()
        if value is not None and value != ""
    ]
    entries.sort(key=lambda item: item[0])
    return urlencode(entries)


class JumpServerClient:
    """
    Sends HMAC-signed requests to JumpServer.

    Args:
        settings: Frozen endpoint and credential configuration
        transport: Optional httpx transport (tests pass an httpx.MockTransport)
        clock: Returns the current Unix time; used for the signed Date header
    """

    def __init__(
        self,
        settings: JumpServerSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self._transport = transport
        self._clock = clock

    def _require_org_id(self, org_id: str | None) -> str:
        resolved = org_id or self.settings.org_id
        if not resolved:
            raise ConfigurationError("Missing organization id. Set JUMPSERVER_ORG_ID.")
        return resolved

    def _check_configuration(self) -> None:
        if self.settings.missing_credentials():
            raise ConfigurationError(
                "Missing JumpServer API-Key credentials. "
                "Set JUMPSERVER_ACCESS_KEY_ID and JUMPSERVER_ACCESS_KEY_SECRET."
            )
        if not self.settings.base_url:
            raise ConfigurationError(
                "Missing JumpServer endpoint config. Set JUMPSERVER_BASE_URL."
            )

    def build_path(self, path: str, query: dict[str, Any] | None = None) -> str:
        """Return the signed request target: base path, API path and query."""
        query_string = build_query_string(query)
        path_with_query = f"{self.settings.base_path}{normalize_api_path(path)}"
        if query_string:
            path_with_query = f"{path_with_query}?{query_string}"
        return path_with_query

    async def request(
        self,
        method: str,
        path: str,
        query: dict[str, Any] | None = None,
        body: Any = None,
        org_id: str | None = None,
    ) -> Any:
        """
        Perform one signed request and return the decoded response.

        Returns:
            Parsed JSON when the response content type is JSON, else the text

        Raises:
            ConfigurationError: Credentials, base URL or organization id missing
                                (raised before any network I/O)
            JumpServerAPIError: JumpServer answered with a non-2xx status
            httpx.HTTPError: Transport-level failure
        """
        self._check_configuration()
        required_org_id = self._require_org_id(org_id)

        path_with_query = self.build_path(path, query)
        url = urljoin(self.settings.base_url, path_with_query)
        headers = build_signed_headers(
            method=method,
            path_with_query=path_with_query,
            key_id=self.settings.access_key_id,
            secret=self.settings.secret(),
            date=http_date(self._clock()),
            org_id=required_org_id,
        )

        content = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(body)

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.request(method, url, headers=headers, content=content)

        logger.debug(
            "JumpServer request completed",
            extra={
                "log_data": {
                    "method": method.upper(),
                    "path": normalize_api_path(path),
                    "status": response.status_code,
                }
            },
        )

        content_type = response.headers.get("content-type", "")
        data = response.json() if "application/json" in content_type else response.text

        if not response.is_success:
            body_text = data if isinstance(data, str) else json.dumps(data)
            raise JumpServerAPIError(response.status_code, body_text)

        return data
