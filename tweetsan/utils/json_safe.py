from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, Mapping


def dump_document(value: Any) -> str:
    """Serialise a parsed document as compact JSON text.

    Non-ASCII characters are written as-is; key order follows the mapping.
    Text holding lone surrogates (valid JSON escapes, but not encodable as
    UTF-8) is written with ASCII escapes instead. NaN and infinities raise
    ValueError.
    """

    text = json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return json.dumps(value, ensure_ascii=True, allow_nan=False, separators=(",", ":"))
    return text


def to_jsonable(obj: Any) -> Any:
    """
    Convert tweetsan objects to JSON-serializable equivalents.

    Mappings are checked before dataclasses so an AllowListTree renders as
    its nested {segment: subtree-or-None} form.
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return str(obj)
