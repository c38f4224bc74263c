from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .allow_list import AllowListTree, build_allow_list

DEFAULT_FIELDS_TO_KEEP: Tuple[str, ...] = (
    "id",
    "id_str",
    "created_at",
    "text",
    "full_text",
    "extended_tweet.full_text",
    "user.screen_name",
    "coordinates",
    "place",
    "entities.media",
)

MEDIA_FIELD: str = "entities.media"

_ENTRY_SEPARATORS = re.compile(r"[,\s]+")


class FieldSourceError(Exception):
    """
    Raised when a field selection cannot be loaded or is unusable.
    """

    pass


def split_keep_option(raw: str) -> List[str]:
    """Split a comma-separated option value into field paths."""

    return [p.strip() for p in (raw or "").split(",") if p.strip()]


def parse_keep_text(text: str) -> List[str]:
    """Parse keep-file text into field paths.

    Entries may be separated by commas, spaces or newlines. Anything after
    "#" on a line is a comment. Blank entries are dropped.
    """

    out: List[str] = []
    for line in (text or "").splitlines():
        line = line.split("#", 1)[0]
        out.extend(e for e in _ENTRY_SEPARATORS.split(line) if e)
    return out


def load_keep_file(path: Union[str, Path]) -> List[str]:
    """Read and parse a keep-file."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FieldSourceError(f"cannot read keep-file {path}: {e}") from e
    return parse_keep_text(text)


def without_media(fields: Iterable[str]) -> List[str]:
    return [f for f in fields if f.strip() != MEDIA_FIELD]


def resolve_fields(keep: Optional[str] = None, keep_file: Optional[str] = None) -> List[str]:
    """Pick the field list to use.

    Precedence: an explicit comma-separated value, then a keep-file, then
    DEFAULT_FIELDS_TO_KEEP.
    """

    if keep is not None:
        return split_keep_option(keep)
    if keep_file is not None:
        return load_keep_file(keep_file)
    return list(DEFAULT_FIELDS_TO_KEEP)


@dataclass(frozen=True)
class FieldSelection:
    """Where an allow-list comes from: the configured paths plus the media toggle."""

    fields: Tuple[str, ...] = DEFAULT_FIELDS_TO_KEEP
    skip_media: bool = False

    @classmethod
    def resolve(
        cls,
        *,
        keep: Optional[str] = None,
        keep_file: Optional[str] = None,
        skip_media: bool = False,
    ) -> "FieldSelection":
        return cls(fields=tuple(resolve_fields(keep, keep_file)), skip_media=bool(skip_media))

    def effective_fields(self) -> List[str]:
        if self.skip_media:
            return without_media(self.fields)
        return list(self.fields)

    def build(self) -> AllowListTree:
        return build_allow_list(self.effective_fields())
