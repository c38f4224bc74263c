"""Field selection for tweetsan.

Turns dotted field paths ("user.screen_name") into the nested allow-list
tree the sanitiser prunes against, and loads those paths from the built-in
defaults, option values or keep-files.
"""

from .allow_list import AllowListTree, build_allow_list, render_allow_list
from .live import AllowListSnapshot, LiveAllowList
from .sources import (
    DEFAULT_FIELDS_TO_KEEP,
    MEDIA_FIELD,
    FieldSelection,
    FieldSourceError,
    load_keep_file,
    parse_keep_text,
    resolve_fields,
    split_keep_option,
    without_media,
)

__all__ = [
    "AllowListTree",
    "build_allow_list",
    "render_allow_list",
    "AllowListSnapshot",
    "LiveAllowList",
    "DEFAULT_FIELDS_TO_KEEP",
    "MEDIA_FIELD",
    "FieldSelection",
    "FieldSourceError",
    "load_keep_file",
    "parse_keep_text",
    "resolve_fields",
    "split_keep_option",
    "without_media",
]
