"""
Resolve a JumpServer database asset name into temporary MySQL credentials.

Three sequential API calls, each depending on the previous one:

    1. GET  /assets/databases/suggestions/?search=<name>  -> pick the asset
    2. POST /authentication/connection-token/             -> token id/value
    3. GET  /terminal/endpoints/smart/?protocol=mysql&token=<id> -> host/port

The token id and value act as the MySQL username and password. JumpServer
owns the token lifecycle: it is never renewed or revoked here.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any
from urllib.parse import quote

from jumpserver_mcp.client import JumpServerClient
from jumpserver_mcp.errors import (
    AssetNotFoundError,
    IncompleteConnectionDataError,
    InvalidArgumentError,
)

logger = logging.getLogger("mcp-jumpserver.credentials")

DEFAULT_ASSET_NAME = "DB-ltc-prod"
DEFAULT_ACCOUNT = "jumpserver_r"

DB_PROTOCOL = "mysql"
CONNECT_METHOD = "db_guide"

DEFAULT_CONNECT_OPTIONS = {
    "charset": "default",
    "disableautohash": False,
    "resolution": "auto",
    "backspaceAsCtrlH": False,
    "appletConnectMethod": "web",
    "reusable": False,
}

# Characters left unescaped by JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class ResolvedCredentials:
    """Connection details returned to the MCP caller."""

    host: str
    port: int
    username: str
    password: str
    database: str
    expire_time: Any
    date_expired: Any
    mysql_command: str
    jdbc_url: str
    asset_id: Any
    asset_name: Any
    org_id: Any

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def to_list(data: Any) -> list:
    """Accept a bare list or a paginated {"results": [...]} page."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        return data["results"]
    return []


def _as_record(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def pick_database_asset(assets: list[dict], search: str) -> dict:
    """
    Select the asset whose name equals `search` exactly, else the first one.

    Raises:
        AssetNotFoundError: If `assets` is empty
    """
    if not assets:
        raise AssetNotFoundError(search)

    for asset in assets:
        if str(asset.get("name") or "") == search:
            return asset

    selected = assets[0]
    logger.warning(
        "No exact asset name match, using first search result",
        extra={
            "log_data": {
                "search": search,
                "candidates": len(assets),
                "asset_id": selected.get("id"),
                "asset_name": selected.get("name"),
            }
        },
    )
    return selected


def shell_quote(value: Any) -> str:
    """
    Quote a value as one POSIX shell word: p'w -> 'p'\\''w'.

    Unlike shlex.quote, the result is always wrapped in single quotes.
    """
    text = "" if value is None else str(value)
    return "'" + text.replace("'", "'\\''") + "'"


def build_mysql_command(host: str, port: int, username: str, password: str, database: str) -> str:
    return (
        f"mysql -u {shell_quote(username)} -p{shell_quote(password)} "
        f"-h {shell_quote(host)} -P {port} {shell_quote(database)}"
    )


def build_jdbc_url(host: str, port: int, username: str, password: str, database: str) -> str:
    user = quote(str(username), safe=_URI_COMPONENT_SAFE)
    secret = quote(str(password), safe=_URI_COMPONENT_SAFE)
    return f"jdbc:mysql://{host}:{port}/{database}?user={user}&password={secret}"


async def get_db_credentials(
    client: JumpServerClient,
    asset_name: str | None = DEFAULT_ASSET_NAME,
    account: str = DEFAULT_ACCOUNT,
    org_id: str | None = None,
) -> ResolvedCredentials:
    """
    Resolve temporary database connection credentials by asset name.

    Args:
        client: Signed JumpServer API client
        asset_name: Database asset name to search for (exact match preferred)
        account: JumpServer account to connect as
        org_id: Organization id; falls back to JUMPSERVER_ORG_ID

    Returns:
        ResolvedCredentials with all connection fields populated

    Raises:
        InvalidArgumentError: Blank asset name (before any network call)
        AssetNotFoundError: The search returned no assets
        IncompleteConnectionDataError: A required field is missing from the
                                       JumpServer responses
        ConfigurationError, JumpServerAPIError, httpx.HTTPError: From the client
    """
    search = str(asset_name or "").strip()
    if not search:
        raise InvalidArgumentError("asset_name cannot be empty.")

    # Step 1: find the database asset
    assets_data = await client.request(
        "GET",
        "/assets/databases/suggestions/",
        query={"search": search},
        org_id=org_id,
    )
    asset = pick_database_asset(to_list(assets_data), search)
    logger.info(
        "Database asset selected",
        extra={"log_data": {"search": search, "asset_id": asset.get("id"), "asset_name": asset.get("name")}},
    )

    # Step 2: mint a connection token for the account
    token_data = await client.request(
        "POST",
        "/authentication/connection-token/",
        body={
            "asset": asset.get("id"),
            "account": account,
            "protocol": DB_PROTOCOL,
            "input_username": account,
            "input_secret": "",
            "connect_method": CONNECT_METHOD,
            "connect_options": DEFAULT_CONNECT_OPTIONS,
        },
        org_id=org_id,
    )

    token = _as_record(token_data)

    # Step 3: resolve the endpoint the token connects through
    endpoint_data = await client.request(
        "GET",
        "/terminal/endpoints/smart/",
        query={"protocol": DB_PROTOCOL, "token": token.get("id")},
        org_id=org_id,
    )
    endpoint = _as_record(endpoint_data)

    host = endpoint.get("host")
    port = endpoint.get("mysql_port")
    username = token.get("id")
    password = token.get("value")
    database = asset.get("db_name")

    if not host or not port or not username or not password or not database:
        raise IncompleteConnectionDataError(
            "Incomplete connection data from JumpServer API response."
        )

    logger.info(
        "Connection endpoint resolved",
        extra={"log_data": {"asset_id": asset.get("id"), "host": host, "port": port}},
    )

    return ResolvedCredentials(
        host=host,
        port=port,
        username=username,
        password=password,
        database=database,
        expire_time=token.get("expire_time"),
        date_expired=token.get("date_expired"),
        mysql_command=build_mysql_command(host, port, username, password, database),
        jdbc_url=build_jdbc_url(host, port, username, password, database),
        asset_id=asset.get("id"),
        asset_name=asset.get("name"),
        org_id=token.get("org_id") or asset.get("org_id"),
    )
