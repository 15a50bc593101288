"""
permledger.state.journal: undo journal, checkpoints, revert/commit.

Every mutable map in a ledger instance (balances, allowances, scalars, role
sets, compliance flags) is a :class:`JournaledMap` bound to one shared
:class:`Journal`. While a checkpoint is open, each write first records the key's
previous value (or its absence). Reverting the top checkpoint replays those
records newest-first, restoring the exact prior contents; committing simply
hands the records to the enclosing checkpoint, or drops them when the outermost
checkpoint closes.

Key properties
--------------
- Pure Python, no I/O, deterministic.
- Nested checkpoints behave as a stack: an inner revert keeps outer writes.
- O(writes) revert cost; reads are plain dict lookups (no overlays).
- Writes with no open checkpoint are applied directly and are not undoable.

Intended usage
--------------
    j = Journal()
    balances = JournaledMap(j, "balances")
    with j.atomic():
        balances["a"] = 10
        raise SomeError()           # balances is back to its previous contents

    marker = j.checkpoint()
    balances["b"] = 1
    j.revert_to(marker - 1)         # discard everything since the checkpoint
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import (Any, Dict, Hashable, Iterator, List,
                    MutableMapping, Optional, TypeVar)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING: Any = object()


@dataclass
class _UndoEntry:
    target: Dict[Any, Any]
    key: Any
    previous: Any  # _MISSING if the key was absent


class Journal:
    """
    Stack of checkpoints over a flat undo log.

    API highlights
    --------------
    - begin() / commit() / revert()
    - checkpoint() / commit_to(marker) / revert_to(marker)
    - atomic() context manager: begin, then commit on success or revert on error
    """

    def __init__(self) -> None:
        self._log: List[_UndoEntry] = []
        # Each mark is the length of the undo log when the checkpoint opened.
        self._marks: List[int] = []

    # ------------------------------------------------------------------ #
    # Checkpointing
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        """Number of open checkpoints (0 when idle)."""
        return len(self._marks)

    def begin(self) -> int:
        """Open a checkpoint. Returns the new depth marker."""
        self._marks.append(len(self._log))
        return len(self._marks)

    def commit(self) -> None:
        """Close the top checkpoint, keeping its writes."""
        if not self._marks:
            raise RuntimeError("commit without an open checkpoint")
        self._marks.pop()
        if not self._marks:
            # Outermost commit: nothing left that could ask for these entries.
            self._log.clear()

    def revert(self) -> None:
        """Close the top checkpoint, undoing its writes newest-first."""
        if not self._marks:
            raise RuntimeError("revert without an open checkpoint")
        mark = self._marks.pop()
        while len(self._log) > mark:
            e = self._log.pop()
            if e.previous is _MISSING:
                e.target.pop(e.key, None)
            else:
                e.target[e.key] = e.previous

    def checkpoint(self) -> int:
        """Alias for `begin()` returning a marker token (current depth)."""
        return self.begin()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until the current depth equals `marker`."""
        if marker < 0:
            raise ValueError("marker must be >= 0")
        while len(self._marks) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 0:
            raise ValueError("marker must be >= 0")
        while len(self._marks) > marker:
            self.revert()

    @contextmanager
    def atomic(self) -> Iterator[int]:
        """
        Run the body inside a checkpoint.

        Any exception reverts every write made in the body (including writes
        made by nested checkpoints that already committed) and re-raises.
        """
        marker = self.begin()
        try:
            yield marker
        except BaseException:
            self.revert_to(marker - 1)
            raise
        else:
            self.commit_to(marker - 1)

    # ------------------------------------------------------------------ #
    # Recording
    # ------------------------------------------------------------------ #

    def record(self, target: Dict[Any, Any], key: Any) -> None:
        """Remember the current value of target[key] if a checkpoint is open."""
        if not self._marks:
            return
        self._log.append(_UndoEntry(target, key, target.get(key, _MISSING)))

    def pending(self) -> int:
        """Number of undo entries held by open checkpoints."""
        return len(self._log)


class JournaledMap(MutableMapping[K, V]):
    """
    A dict whose writes are undoable through a shared :class:`Journal`.

    Reads never touch the journal. `name` is only used in reprs and snapshots.
    """

    def __init__(self, journal: Journal, name: str = "", default: Optional[V] = None) -> None:
        self._journal = journal
        self._data: Dict[K, V] = {}
        self._default = default
        self.name = name

    # MutableMapping protocol -------------------------------------------

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __setitem__(self, key: K, value: V) -> None:
        self._journal.record(self._data, key)
        self._data[key] = value

    def __delitem__(self, key: K) -> None:
        if key not in self._data:
            raise KeyError(key)
        self._journal.record(self._data, key)
        del self._data[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    # Convenience -------------------------------------------------------

    def value(self, key: K) -> V:
        """Read with the map's default (e.g. 0 for balances, False for flags)."""
        return self._data.get(key, self._default)  # type: ignore[return-value]

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"JournaledMap({self.name!r}, {len(self._data)} keys)"


__all__ = ["Journal", "JournaledMap"]
