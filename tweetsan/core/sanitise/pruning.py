from __future__ import annotations

from typing import Any

from tweetsan.core.fields.allow_list import AllowListTree


def prune_document(node: Any, allow: AllowListTree) -> None:
    """Delete, in place, every object key that the allow-list does not name.

    Recursion only follows objects. When an allow-listed value is an array
    or a scalar it is kept verbatim, even if the allow-list has nested
    entries for it: array elements are never pruned.
    """

    if not isinstance(node, dict):
        return

    for key in [k for k in node if k not in allow]:
        del node[key]

    for key, child in allow.items():
        if child is not None and key in node:
            prune_document(node[key], child)
