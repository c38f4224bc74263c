from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Optional

from .allow_list import AllowListTree
from .sources import FieldSelection


@dataclass(frozen=True, slots=True)
class AllowListSnapshot:
    """A selection together with the tree built from it."""

    selection: FieldSelection
    tree: AllowListTree


class LiveAllowList:
    """Holder for an allow-list that can be rebuilt while it is being read.

    Readers call snapshot() once and use the result for the whole request.
    replace() builds the new tree outside the lock and swaps the snapshot as
    a single reference assignment, so a reader sees either the old tree or
    the new one, never a mix.
    """

    def __init__(self, selection: Optional[FieldSelection] = None):
        selection = selection or FieldSelection()
        self._snapshot = AllowListSnapshot(selection=selection, tree=selection.build())
        self._lock = Lock()

    def snapshot(self) -> AllowListSnapshot:
        return self._snapshot

    @property
    def tree(self) -> AllowListTree:
        return self._snapshot.tree

    def replace(self, selection: FieldSelection) -> AllowListSnapshot:
        snap = AllowListSnapshot(selection=selection, tree=selection.build())
        with self._lock:
            self._snapshot = snap
        return snap
