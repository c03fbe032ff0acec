"""
CLI utility to sign a JumpServer API request for manual debugging.

Prints the signed headers for one request and a ready-to-run curl command,
using the same signing code and settings (JUMPSERVER_* environment variables
or .env) as the MCP server. Useful to check an API key pair or an endpoint
response without going through an MCP client.

Usage examples:

    # Search database assets
    python -m scripts.sign_request --path /assets/databases/suggestions/ --query search=DB-ltc-prod

    # Resolve a smart endpoint for an existing token in another organization
    python -m scripts.sign_request --path /terminal/endpoints/smart/ \\
        --query protocol=mysql --query token=<token-id> --org-id <org-id>

The signature embeds the Date header, so the printed command must be run
promptly: JumpServer rejects signatures whose date drifts too far.
"""

import argparse
import shlex
import sys
import time
from urllib.parse import urljoin

from jumpserver_mcp.client import JumpServerClient
from jumpserver_mcp.config import jumpserver_settings
from jumpserver_mcp.signing import build_signed_headers, http_date


def parse_query(pairs: list[str]) -> dict[str, str]:
    """Turn ["a=1", "b=2"] into {"a": "1", "b": "2"}."""
    query = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Query parameter must be key=value, got: {pair}")
        query[key] = value
    return query


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Sign a JumpServer API request and print a curl command.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Asset search:
    %(prog)s --path /assets/databases/suggestions/ --query search=DB-ltc-prod

  Explicit organization:
    %(prog)s --path /assets/databases/suggestions/ --query search=db --org-id 0000-...
        """,
    )

    parser.add_argument(
        "--method",
        default="GET",
        help="HTTP method (default: GET)",
    )
    parser.add_argument(
        "--path",
        required=True,
        help="API path relative to JUMPSERVER_BASE_PATH (e.g. /assets/databases/suggestions/)",
    )
    parser.add_argument(
        "--query",
        action="append",
        default=[],
        help="Query parameter as key=value (repeatable)",
    )
    parser.add_argument(
        "--org-id",
        default=None,
        help="Organization id (default: JUMPSERVER_ORG_ID)",
    )

    args = parser.parse_args()

    settings = jumpserver_settings
    if settings.missing_credentials() or not settings.base_url:
        print(
            "JUMPSERVER_ACCESS_KEY_ID, JUMPSERVER_ACCESS_KEY_SECRET and "
            "JUMPSERVER_BASE_URL must be set.",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        query = parse_query(args.query)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    org_id = args.org_id or settings.org_id
    path_with_query = JumpServerClient(settings).build_path(args.path, query)
    headers = build_signed_headers(
        method=args.method,
        path_with_query=path_with_query,
        key_id=settings.access_key_id,
        secret=settings.secret(),
        date=http_date(time.time()),
        org_id=org_id,
    )
    url = urljoin(settings.base_url, path_with_query)

    print(f"Method:     {args.method.upper()}")
    print(f"Target:     {path_with_query}")
    print(f"Org:        {org_id or '(none)'}")
    print()
    for name, value in headers.items():
        print(f"{name}: {value}")

    # Also print a ready-to-use curl command
    print()
    print("Usage with curl:")
    print(f"  curl -X {args.method.upper()} {shlex.quote(url)} \\")
    header_lines = [f"    -H {shlex.quote(f'{name}: {value}')}" for name, value in headers.items()]
    print(" \\\n".join(header_lines))


if __name__ == "__main__":
    main()
