from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from tweetsan.client.http import HttpResponse, TweetsanHttpClient
from tweetsan.core.fields import FieldSourceError, load_keep_file, split_keep_option


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _client(args: argparse.Namespace) -> TweetsanHttpClient:
    return TweetsanHttpClient(args.url, api_key=args.api_key, max_body_bytes=args.max_body_bytes)


def _failed(r: HttpResponse) -> bool:
    if r.status >= 400:
        print(r.text(), file=sys.stderr)
        return True
    return False


def cmd_client_health(args: argparse.Namespace) -> int:
    """Call GET /health."""
    r = _client(args).get("/health")
    if _failed(r):
        return 2
    _print_json(r.json())
    return 0


def cmd_client_sanitise(args: argparse.Namespace) -> int:
    """Send JSON lines to POST /sanitise/batch and print the sanitised lines."""
    if args.input == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.input).read_text(encoding="utf-8")

    params = {"skip_media": "true"} if args.skip_media else None
    r = _client(args).post_text(
        "/sanitise/batch", text, content_type="application/x-ndjson", params=params
    )
    if _failed(r):
        return 2
    sys.stdout.write(r.text())
    errors = r.header("X-Tweetsan-Errors")
    if errors and errors != "0":
        print(f"{errors} document(s) could not be parsed", file=sys.stderr)
    return 0


def cmd_client_fields(args: argparse.Namespace) -> int:
    """Call GET /fields."""
    r = _client(args).get("/fields")
    if _failed(r):
        return 2
    _print_json(r.json())
    return 0


def cmd_client_set_fields(args: argparse.Namespace) -> int:
    """Replace the server's allow-list via PUT /fields."""
    payload: Dict[str, Any] = {"skip_media": bool(args.skip_media)}
    try:
        if args.keep is not None:
            payload["fields"] = split_keep_option(args.keep)
        else:
            payload["fields"] = load_keep_file(args.keep_file)
    except FieldSourceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    r = _client(args).put_json("/fields", payload)
    if _failed(r):
        return 2
    _print_json(r.json())
    return 0


def register_client_commands(sub: argparse._SubParsersAction) -> None:
    """Register the `client` command group."""

    client = sub.add_parser("client", help="tweetsan API client (talk to a running server)")
    client.add_argument("--url", default="http://127.0.0.1:8080", help="Base API URL")
    client.add_argument("--api-key", default=None, help="API key (X-Tweetsan-API-Key)")
    client.add_argument(
        "--max-body-bytes", type=int, default=5 * 1024 * 1024, help="Client-side body cap"
    )
    csub = client.add_subparsers(dest="client_cmd", required=True)

    h = csub.add_parser("health", help="Check server health")
    h.set_defaults(func=cmd_client_health)

    san = csub.add_parser("sanitise", help="Sanitise a file of JSON lines on the server")
    san.add_argument("input", nargs="?", default="-", help="JSON lines file ('-' for stdin)")
    san.add_argument("--skip-media", action="store_true", help="Drop entities.media for this call")
    san.set_defaults(func=cmd_client_sanitise)

    f = csub.add_parser("fields", help="Show the server's allow-list")
    f.set_defaults(func=cmd_client_fields)

    sf = csub.add_parser("set-fields", help="Replace the server's allow-list")
    src = sf.add_mutually_exclusive_group(required=True)
    src.add_argument("-k", "--keep", default=None, help="Fields to keep (comma separated)")
    src.add_argument("--keep-file", default=None, help="Keep-file (comma/space/newline separated)")
    sf.add_argument("--skip-media", action="store_true", help="Drop entities.media")
    sf.set_defaults(func=cmd_client_set_fields)
