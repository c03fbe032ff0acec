"""
Exceptions raised while resolving JumpServer database credentials.

Every failure aborts the current tool call. Transport failures from httpx
(httpx.HTTPError) are not wrapped and propagate as they are.
"""


class JumpServerError(Exception):
    """
    Base class for all errors raised by this package.

    Attributes:
        message: Human-readable error description (returned to the MCP caller)
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(JumpServerError):
    """Credentials, base URL or organization id are not configured."""


class InvalidArgumentError(JumpServerError):
    """A tool argument is unusable, e.g. a blank asset name."""


class AssetNotFoundError(JumpServerError):
    """The asset search returned no results."""

    def __init__(self, search: str):
        self.search = search
        super().__init__(f"No database assets found by search: {search}")


class JumpServerAPIError(JumpServerError):
    """
    JumpServer answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by JumpServer
        body: Raw response body (JSON bodies re-serialized to text)
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"JumpServer API {status_code}: {body}")


class IncompleteConnectionDataError(JumpServerError):
    """All API calls succeeded but a required connection field is missing."""
