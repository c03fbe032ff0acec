"""
HMAC request signing for the JumpServer API.

JumpServer authenticates API-key requests with an HTTP Signature header:

    Authorization: Signature keyId="<key id>",algorithm="hmac-sha256",
                   headers="(request-target) accept date",signature="<b64>"

The signature covers three pseudo-headers, one per line:

    (request-target): get /api/v1/assets/databases/suggestions/?search=db
    accept: application/json
    date: Mon, 19 Oct 2026 10:00:00 GMT

The signature is the base64 encoding of HMAC-SHA256(secret, signing string).
Because the Date header is part of the signed material, every request gets a
fresh signature; signatures are never cached or reused.
"""

import base64
import hashlib
import hmac
from email.utils import formatdate

ACCEPT = "application/json"
SIGNED_HEADERS = "(request-target) accept date"
ALGORITHM = "hmac-sha256"


def http_date(timestamp: float) -> str:
    """Format a Unix timestamp as an RFC 7231 HTTP date (always GMT)."""
    return formatdate(timestamp, usegmt=True)


def build_signing_string(method: str, path_with_query: str, date: str) -> str:
    """
    Build the canonical string that gets signed.

    Args:
        method: HTTP method, lowercased in the request-target line
        path_with_query: Full request path including base path and query string
        date: Value of the Date header sent with the request
    """
    return "\n".join(
        [
            f"(request-target): {method.lower()} {path_with_query}",
            f"accept: {ACCEPT}",
            f"date: {date}",
        ]
    )


def sign(signing_string: str, secret: str) -> str:
    """Return the base64-encoded HMAC-SHA256 digest of the signing string."""
    digest = hmac.new(
        secret.encode("utf-8"),
        signing_string.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def build_signed_headers(
    method: str,
    path_with_query: str,
    key_id: str,
    secret: str,
    date: str,
    org_id: str | None = None,
) -> dict[str, str]:
    """
    Build the Accept, Date, Authorization and (optionally) X-JMS-ORG headers.

    The returned Date header must be sent unchanged: the server recomputes the
    signature from it.
    """
    signature = sign(build_signing_string(method, path_with_query, date), secret)
    authorization = (
        f'Signature keyId="{key_id}",algorithm="{ALGORITHM}",'
        f'headers="{SIGNED_HEADERS}",signature="{signature}"'
    )

    headers = {
        "Accept": ACCEPT,
        "Date": date,
        "Authorization": authorization,
    }
    if org_id:
        headers["X-JMS-ORG"] = org_id
    return headers
