"""
Application configuration loaded from environment variables.

Uses pydantic-settings to define typed configuration that automatically reads
from environment variables (and a local .env file). Two groups of settings:

- JumpServerSettings (JUMPSERVER_ prefix): where the JumpServer API lives and
  which API key pair signs the requests.
- ServerSettings (MCP_ prefix): how this MCP server itself runs.

The JumpServer values are all optional at load time. Missing credentials or a
missing base URL are reported by the API client when a request is attempted,
so the server can still start and answer health checks without them.
"""

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings

DEFAULT_BASE_PATH = "/api/v1"


def normalize_base_path(value: str) -> str:
    """
    Normalize an API base path to "" or "/segment[/segment...]".

    Examples: "api/v1/" -> "/api/v1", "/api/v1" -> "/api/v1", "/" -> "".
    """
    value = value.strip().strip("/")
    return f"/{value}" if value else ""


class JumpServerSettings(BaseSettings):
    """
    Connection settings for the JumpServer API.

    Each field maps to an environment variable with the JUMPSERVER_ prefix,
    e.g. `access_key_id` reads JUMPSERVER_ACCESS_KEY_ID.

    The instance is frozen: it is built once at startup and handed to the
    API client, never mutated afterwards.
    """

    # --- API key pair ---

    # Identifier of the JumpServer access key. Sent in clear text as the
    # keyId of the Signature Authorization header.
    access_key_id: str | None = None

    # Shared HMAC secret. SecretStr keeps it out of reprs and log output.
    access_key_secret: SecretStr | None = None

    # --- Endpoint ---

    # Scheme and host of the JumpServer deployment, e.g. https://jms.example.com
    base_url: str | None = None

    # API prefix appended to the base URL.
    base_path: str = DEFAULT_BASE_PATH

    # Organization used when a tool call does not pass one explicitly.
    org_id: str | None = None

    model_config = {
        "env_prefix": "JUMPSERVER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        # The .env file also holds MCP_ variables.
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("base_path", mode="before")
    @classmethod
    def _normalize_base_path(cls, value: str | None) -> str:
        if value is None or value == "":
            value = DEFAULT_BASE_PATH
        return normalize_base_path(value)

    def missing_credentials(self) -> bool:
        return not self.access_key_id or not self.secret()

    def secret(self) -> str:
        if self.access_key_secret is None:
            return ""
        return self.access_key_secret.get_secret_value()


class ServerSettings(BaseSettings):
    """
    MCP server runtime settings, read from MCP_ prefixed variables.
    """

    # "stdio" for local agent integration, "streamable-http" to serve over HTTP.
    transport: str = "stdio"

    # Only used by the streamable-http transport.
    host: str = "127.0.0.1"
    port: int = 8080

    # Logging verbosity. Maps to Python's logging levels.
    log_level: str = "info"

    model_config = {
        "env_prefix": "MCP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton instances: import these from other modules.
jumpserver_settings = JumpServerSettings()
server_settings = ServerSettings()
