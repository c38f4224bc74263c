from __future__ import annotations

import json
import logging
import math
import traceback
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional

from tweetsan.core.fields.allow_list import AllowListTree
from tweetsan.utils.json_safe import dump_document

from .errors import DocumentParseError
from .pruning import prune_document
from .text import normalise_text

log = logging.getLogger("tweetsan.sanitise")


@dataclass(frozen=True)
class SanitiseResult:
    """Outcome of sanitising one document.

    output is always valid JSON text: the sanitised document when ok, the
    error object otherwise.
    """

    output: str
    ok: bool
    error: Optional[str] = None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


def _finite_float(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {raw}")
    return value


def parse_document(document: str) -> Any:
    """Parse one JSON document, raising DocumentParseError on failure.

    Only strict JSON is accepted: NaN, Infinity and numbers that overflow to
    infinity are rejected. A line read with errors="surrogateescape" that
    held undecodable bytes is rejected as not UTF-8.
    """

    try:
        document.encode("utf-8")
    except UnicodeEncodeError as e:
        raise DocumentParseError("document is not valid UTF-8") from e
    try:
        return json.loads(document, parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, RecursionError) as e:
        raise DocumentParseError(str(e) or type(e).__name__) from e


def error_document(exc: BaseException) -> Dict[str, str]:
    """Build the {"error", "stacktrace"} object reported for a failed document."""

    return {
        "error": str(exc),
        "stacktrace": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def sanitise_document(document: str, allow: AllowListTree) -> SanitiseResult:
    """Prune a JSON document to the allow-list and normalise its text.

    Never raises for bad input: a parse failure becomes an error object in
    the result.
    """

    try:
        root = parse_document(document)
    except DocumentParseError as e:
        log.warning("document_parse_failed: %s", e)
        log.debug("document_parse_failed", exc_info=True)
        return SanitiseResult(output=dump_document(error_document(e)), ok=False, error=str(e))

    prune_document(root, allow)
    normalise_text(root)
    return SanitiseResult(output=dump_document(root), ok=True)


def sanitise_json(document: str, allow: AllowListTree) -> str:
    """Return the sanitised JSON text (or error object) for one document."""

    return sanitise_document(document, allow).output


def sanitise_lines(lines: Iterable[str], allow: AllowListTree) -> Iterator[SanitiseResult]:
    """Sanitise a stream of JSON lines, one result per non-blank line, in order."""

    for line in lines:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        yield sanitise_document(line, allow)
