"""
MCP Server exposing JumpServer database credentials through FastMCP v2.

This module creates and runs the MCP server with:
- One tool: get_jumpserver_db_credentials
- Health and readiness HTTP endpoints (streamable-http transport only)
- Structured JSON logging to stderr

Authorization is left entirely to JumpServer: the signed API key decides
which assets and accounts are reachable. This server makes no access
decisions of its own.

Running the server:
    mcp-jumpserver                      # stdio transport (default)
    MCP_TRANSPORT=streamable-http mcp-jumpserver

    With streamable-http the server listens on MCP_HOST:MCP_PORT with:
    - MCP endpoint at /mcp
    - Health check at /health
    - Readiness check at /ready
"""

import json
import logging
import sys
import uuid

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from jumpserver_mcp.client import JumpServerClient
from jumpserver_mcp.config import jumpserver_settings, server_settings
from jumpserver_mcp.credentials import (
    DEFAULT_ACCOUNT,
    DEFAULT_ASSET_NAME,
    get_db_credentials,
)
from jumpserver_mcp.errors import JumpServerError

TOOL_NAME = "get_jumpserver_db_credentials"

# ---------------------------------------------------------------------------
# Structured JSON Logging
# ---------------------------------------------------------------------------
# One JSON object per log line. Logs go to stderr: with the stdio transport,
# stdout carries the MCP protocol stream and must not be written to.


class JSONLogFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Example output:

        {"timestamp": "2026-10-19 10:30:00,123", "level": "INFO",
         "logger": "mcp-jumpserver", "message": "Tool call succeeded",
         "request_id": "1a2b3c4d", "asset_name": "DB-ltc-prod"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge structured fields passed via logger.info("msg", extra={"log_data": {...}})
        if hasattr(record, "log_data"):
            log_entry.update(record.log_data)
        return json.dumps(log_entry, default=str)


handler = logging.StreamHandler(sys.stderr)
handler.setFormatter(JSONLogFormatter())

logging.basicConfig(
    level=getattr(logging, server_settings.log_level.upper()),
    handlers=[handler],
)
logger = logging.getLogger("mcp-jumpserver")


# ---------------------------------------------------------------------------
# JumpServer client and MCP server
# ---------------------------------------------------------------------------
client = JumpServerClient(jumpserver_settings)

mcp = FastMCP(
    name="mcp-jumpserver",
    instructions=(
        "Provides temporary database connection credentials for databases "
        "managed by JumpServer. Call get_jumpserver_db_credentials with the "
        "JumpServer database asset name to receive host, port, a short-lived "
        "username/password pair, a mysql command line and a JDBC URL."
    ),
)


# ---------------------------------------------------------------------------
# Tool: get_jumpserver_db_credentials
# ---------------------------------------------------------------------------
@mcp.tool(
    name=TOOL_NAME,
    description="Get temporary database connection credentials by JumpServer database asset name.",
    annotations={"title": "Get JumpServer DB Credentials"},
)
async def get_jumpserver_db_credentials(
    asset_name: str = DEFAULT_ASSET_NAME,
    account: str = DEFAULT_ACCOUNT,
    org_id: str | None = None,
) -> str:
    """
    Returns the resolved connection credentials as a JSON object.

    Each call mints a new connection token; nothing is cached between calls.
    """
    request_id = str(uuid.uuid4())[:8]
    log_data = {"request_id": request_id, "tool": TOOL_NAME, "asset_name": asset_name, "account": account}

    try:
        credentials = await get_db_credentials(
            client,
            asset_name=asset_name,
            account=account,
            org_id=org_id,
        )
    except JumpServerError as e:
        logger.warning(
            "Tool call failed",
            extra={"log_data": {**log_data, "error": type(e).__name__, "reason": e.message}},
        )
        raise
    except Exception as e:
        logger.error(
            "Tool call failed",
            extra={"log_data": {**log_data, "error": type(e).__name__}},
        )
        raise

    logger.info(
        "Tool call succeeded",
        extra={"log_data": {**log_data, "asset_id": credentials.asset_id, "expire_time": credentials.expire_time}},
    )
    return json.dumps(credentials.to_dict(), ensure_ascii=False)


# ---------------------------------------------------------------------------
# Health and Readiness Endpoints
# ---------------------------------------------------------------------------
# Plain HTTP endpoints (not MCP protocol), only served with streamable-http.


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> Response:
    """Liveness probe: is the server process alive and responsive?"""
    return JSONResponse({"status": "healthy"})


@mcp.custom_route("/ready", methods=["GET"])
async def readiness_check(request: Request) -> Response:
    """Readiness probe: is enough configuration present to call JumpServer?"""
    settings = client.settings

    if settings.missing_credentials():
        return JSONResponse(
            {"status": "not_ready", "reason": "JumpServer API-Key credentials missing"},
            status_code=503,
        )
    if not settings.base_url:
        return JSONResponse(
            {"status": "not_ready", "reason": "JumpServer base URL missing"},
            status_code=503,
        )

    return JSONResponse({"status": "ready"})


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------
def main() -> None:
    if server_settings.transport == "stdio":
        logger.info("Starting MCP server (transport=stdio)")
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting MCP server on %s:%d (transport=%s)",
        server_settings.host,
        server_settings.port,
        server_settings.transport,
    )
    mcp.run(
        transport=server_settings.transport,
        host=server_settings.host,
        port=server_settings.port,
        log_level=server_settings.log_level,
    )


if __name__ == "__main__":
    main()
