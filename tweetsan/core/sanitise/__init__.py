"""Tweet sanitisation.

Prunes a tweet's JSON down to an allow-list of fields and surfaces the
long-form tweet text under "text".

Notes:
- Input is untrusted text; a malformed document yields an error object,
  never an exception.
- Each call works on its own parsed tree; nothing is shared between calls.
"""

from .errors import DocumentParseError, ParseError, SanitiseError
from .pruning import prune_document
from .sanitiser import (
    SanitiseResult,
    error_document,
    parse_document,
    sanitise_document,
    sanitise_json,
    sanitise_lines,
)
from .text import TEXT_SOURCES, get_path, has_path, normalise_text

__all__ = [
    "SanitiseError",
    "DocumentParseError",
    "ParseError",
    "prune_document",
    "SanitiseResult",
    "error_document",
    "parse_document",
    "sanitise_document",
    "sanitise_json",
    "sanitise_lines",
    "TEXT_SOURCES",
    "get_path",
    "has_path",
    "normalise_text",
]
