from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Tuple

TEXT_KEY: str = "text"

# Checked in order; a later source that is present overwrites an earlier one.
TEXT_SOURCES: Tuple[str, ...] = (
    "full_text",
    "extended_tweet.full_text",
    "retweeted_status.full_text",
    "retweeted_status.extended_tweet.full_text",
)


def has_path(node: Any, path: str) -> bool:
    """True if every segment of a dotted path names a key on a JSON object.

    The final value may be null.
    """

    head, sep, tail = path.partition(".")
    if not isinstance(node, dict) or head not in node:
        return False
    return has_path(node[head], tail) if sep else True


def get_path(node: Any, path: str) -> Any:
    """Return the value at a dotted path; call has_path() first."""

    head, sep, tail = path.partition(".")
    return get_path(node[head], tail) if sep else node[head]


def _is_truncated(root: Dict[str, Any]) -> bool:
    return root.get("truncated") is True


def normalise_text(root: Any) -> None:
    """Surface the best available tweet text under the "text" key.

    Operates on the root object only, after pruning:

    1. "full_text" is copied to "text".
    2. If "truncated" is true, "extended_tweet.full_text" is copied.
    3. "retweeted_status.full_text" is copied.
    4. "retweeted_status.extended_tweet.full_text" is copied.

    Each step runs only when its source exists and overwrites the previous
    result. If none applies, "text" is left as pruning left it.
    """

    if not isinstance(root, dict):
        return

    for path in TEXT_SOURCES:
        if path == "extended_tweet.full_text" and not _is_truncated(root):
            continue
        if has_path(root, path):
            root[TEXT_KEY] = deepcopy(get_path(root, path))
