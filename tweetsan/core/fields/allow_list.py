from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

INDENT: str = "  "


@dataclass(frozen=True)
class AllowListTree(Mapping[str, Optional["AllowListTree"]]):
    """Immutable nested allow-list of tweet fields.

    Each key is one path segment. A value of None is a leaf entry (keep the
    whole subtree); a nested AllowListTree keeps only its own entries.

    Invariants
    - Entries are sorted by segment and unique per level.
    - Instances never change after construction and may be shared freely
      between threads.
    """

    entries: Tuple[Tuple[str, Optional["AllowListTree"]], ...] = ()
    _index: Dict[str, Optional["AllowListTree"]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", dict(self.entries))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Optional["AllowListTree"]]) -> "AllowListTree":
        return cls(entries=tuple(sorted(mapping.items(), key=lambda kv: kv[0])))

    def __getitem__(self, key: str) -> Optional["AllowListTree"]:
        return self._index[key]

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def is_leaf(self, key: str) -> bool:
        return key in self._index and self._index[key] is None

    def paths(self) -> List[str]:
        """Flatten back into dotted field paths (sorted)."""

        out: List[str] = []
        for key, child in self.entries:
            if child is None:
                out.append(key)
            else:
                out.extend(f"{key}.{p}" for p in child.paths())
        return out

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dict form, with None for leaf entries."""

        return {k: (None if v is None else v.to_dict()) for k, v in self.entries}


def build_allow_list(paths: Iterable[str]) -> AllowListTree:
    """Build a nested allow-list from dotted field paths.

    "a.b" and "a.c" merge into a single "a" node holding both "b" and "c",
    at any depth. A segment requested as a leaf ("user") and as a branch
    ("user.screen_name") ends up a leaf whatever the input order.

    Malformed paths are not rejected: "a." produces the child segment "" and
    an empty path produces the leaf "".
    """

    leaves = set()
    branches: Dict[str, List[str]] = {}
    for raw in paths:
        path = raw.strip()
        head, sep, tail = path.partition(".")
        if not sep:
            leaves.add(head)
        else:
            branches.setdefault(head, []).append(tail)

    nodes: Dict[str, Optional[AllowListTree]] = {head: None for head in leaves}
    for head, tails in branches.items():
        if head not in leaves:
            nodes[head] = build_allow_list(tails)

    return AllowListTree.from_mapping(nodes)


def render_allow_list(tree: AllowListTree, indent_level: int = 0) -> str:
    """Render the tree as an indented outline, one "- key" line per entry."""

    lines = []
    for key, child in tree.entries:
        lines.append(f"{INDENT * indent_level}- {key}\n")
        if child is not None:
            lines.append(render_allow_list(child, indent_level + 1))
    return "".join(lines)
