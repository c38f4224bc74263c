from __future__ import annotations

import argparse
import io
import json
import logging
import sys
from typing import IO, List, Tuple

from tweetsan.cli.client_cmds import register_client_commands
from tweetsan.core.fields import (
    AllowListTree,
    FieldSelection,
    FieldSourceError,
    render_allow_list,
)
from tweetsan.core.sanitise import sanitise_lines
from tweetsan.utils.json_safe import to_jsonable

log = logging.getLogger("tweetsan.cli")


def _configure_logging(verbose: bool) -> None:
    """Send logs to stderr so stdout stays a clean stream of JSON lines."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s"
    )
    logging.getLogger("tweetsan").setLevel(level)


def _selection_from_args(args: argparse.Namespace) -> FieldSelection:
    return FieldSelection.resolve(
        keep=args.keep, keep_file=args.keep_file, skip_media=args.skip_media
    )


def sanitise_stream(fin: IO[str], fout: IO[str], tree: AllowListTree) -> Tuple[int, int]:
    """Sanitise JSON lines from fin into fout. Returns (documents, errors)."""

    documents = 0
    errors = 0
    for res in sanitise_lines(fin, tree):
        documents += 1
        if not res.ok:
            errors += 1
        fout.write(res.output + "\n")
    fout.flush()
    return documents, errors


def _open_input(path: str) -> IO[str]:
    """Open JSON lines input; undecodable bytes survive as surrogates.

    The sanitiser reports such lines as parse failures instead of the whole
    read failing.
    """

    if path != "-":
        return open(path, "r", encoding="utf-8", errors="surrogateescape")
    if isinstance(sys.stdin, io.TextIOWrapper):
        sys.stdin.reconfigure(encoding="utf-8", errors="surrogateescape")
    return sys.stdin


def cmd_sanitise(args: argparse.Namespace) -> int:
    """Sanitise tweets, one JSON object per line, like a poor man's jq.

    A line that is not valid JSON produces an error object on its output line
    and processing continues.
    """

    try:
        selection = _selection_from_args(args)
    except FieldSourceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    tree = selection.build()
    log.debug("fields to keep:\n%s", render_allow_list(tree))

    try:
        fin = _open_input(args.input)
    except OSError as e:
        print(f"error: cannot open input: {e}", file=sys.stderr)
        return 2

    try:
        if args.out:
            with open(args.out, "w", encoding="utf-8") as fout:
                documents, errors = sanitise_stream(fin, fout, tree)
        else:
            documents, errors = sanitise_stream(fin, sys.stdout, tree)
    finally:
        if fin is not sys.stdin:
            fin.close()

    log.debug("sanitised %d document(s), %d error(s)", documents, errors)
    return 0


def cmd_show_fields(args: argparse.Namespace) -> int:
    """Print the allow-list the other commands would use."""

    try:
        tree = _selection_from_args(args).build()
    except FieldSourceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(to_jsonable(tree), indent=2, sort_keys=True))
    else:
        sys.stdout.write(render_allow_list(tree))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the tweetsan API server.

    Binds to 127.0.0.1 by default. If TWEETSAN_API_KEYS is set, requests
    must provide X-Tweetsan-API-Key.
    """

    try:
        selection = _selection_from_args(args)
    except FieldSourceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        import uvicorn
    except ImportError as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return 2

    try:
        # Importing the module also builds its default app from TWEETSAN_* settings.
        from tweetsan.api.server import create_app
    except FieldSourceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    app = create_app(selection=selection)
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def _field_options() -> argparse.ArgumentParser:
    """Options shared by every command that builds an allow-list."""

    p = argparse.ArgumentParser(add_help=False)
    p.add_argument("-k", "--keep", default=None, help="Fields to keep (comma separated)")
    p.add_argument(
        "--keep-file",
        default=None,
        help="File of fields to keep (comma, space or newline separated; '#' comments)",
    )
    p.add_argument(
        "--skip-media", action="store_true", help="Drop entities.media (images & videos)"
    )
    p.add_argument("-v", "--verbose", "--debug", action="store_true", help="Debug logging")
    return p


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    p = argparse.ArgumentParser(prog="tweetsan", description="Sanitise tweet JSON")
    sub = p.add_subparsers(dest="cmd", required=True)
    fields = _field_options()

    sp = sub.add_parser(
        "sanitise", parents=[fields], help="Sanitise JSON lines from a file or stdin"
    )
    sp.add_argument("input", nargs="?", default="-", help="JSON lines file ('-' for stdin)")
    sp.add_argument("--out", default=None, help="Output file (default: stdout)")
    sp.set_defaults(func=cmd_sanitise)

    sf = sub.add_parser("show-fields", parents=[fields], help="Print the allow-list tree")
    sf.add_argument("--json", action="store_true", help="Print the tree as JSON")
    sf.set_defaults(func=cmd_show_fields)

    sv = sub.add_parser("serve", parents=[fields], help="Run the tweetsan FastAPI server")
    sv.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    sv.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    sv.add_argument("--log-level", default="info", help="Uvicorn log level")
    sv.set_defaults(func=cmd_serve)

    register_client_commands(sub)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(getattr(args, "verbose", False)))
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
