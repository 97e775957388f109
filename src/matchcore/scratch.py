#!/usr/bin/env python3
"""
Per-matcher offset buffer.

A ``MatchScratch`` holds ``2 * (groups + 1)`` unsigned offset slots: slot
``2*g`` is the start and slot ``2*g+1`` the end of capture group ``g`` (group 0
is the whole match). A pair is either both unset, or two byte offsets with
``start <= end``. The buffer is sized once at allocation and never resized.
"""
from __future__ import annotations

import functools
from array import array

from .errors import UseAfterFreeError

_SLOT_TYPECODE = "Q"


@functools.lru_cache(maxsize=None)
def unset_sentinel() -> int:
    """Largest value a slot can hold; marks a group that did not participate."""
    return (1 << (8 * array(_SLOT_TYPECODE).itemsize)) - 1


class MatchScratch:
    """Fixed-size, bounds-checked offset vector owned by exactly one matcher."""

    __slots__ = ("_groups", "_slots", "_size", "_released")

    def __init__(self, groups: int):
        if groups < 0:
            raise ValueError(f"group count must be non-negative, got {groups}")
        self._groups = groups
        self._size = 2 * (groups + 1)
        self._slots = array(_SLOT_TYPECODE, [unset_sentinel()]) * self._size
        self._released = False

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"<MatchScratch groups={self._groups} {state}>"

    def __len__(self) -> int:
        return self._size

    @property
    def groups(self) -> int:
        """Number of capture groups, not counting group 0."""
        return self._groups

    @property
    def released(self) -> bool:
        return self._released

    def ensure_live(self) -> None:
        if self._released:
            raise UseAfterFreeError("match scratch used after release")

    def __getitem__(self, index: int) -> int:
        """Raw slot access with the ``2*g`` / ``2*g+1`` layout."""
        self.ensure_live()
        if not 0 <= index < self._size:
            raise IndexError(f"slot index {index} out of range for {self._size} slots")
        return self._slots[index]

    def _check_group(self, group: int) -> None:
        self.ensure_live()
        if not 0 <= group <= self._groups:
            raise IndexError(f"no such group: {group} (pattern has {self._groups})")

    def is_set(self, group: int) -> bool:
        self._check_group(group)
        return self._slots[2 * group] != unset_sentinel()

    def span(self, group: int) -> tuple[int, int] | None:
        """``(start, end)`` of ``group``, or None when it did not participate."""
        self._check_group(group)
        start = self._slots[2 * group]
        if start == unset_sentinel():
            return None
        return start, self._slots[2 * group + 1]

    def set_span(self, group: int, start: int, end: int) -> None:
        self._check_group(group)
        if not 0 <= start <= end:
            raise ValueError(f"invalid span ({start}, {end}) for group {group}")
        self._slots[2 * group] = start
        self._slots[2 * group + 1] = end

    def unset(self, group: int) -> None:
        self._check_group(group)
        self._slots[2 * group] = unset_sentinel()
        self._slots[2 * group + 1] = unset_sentinel()

    def clear(self) -> None:
        """Mark every group as not participating."""
        self.ensure_live()
        sentinel = unset_sentinel()
        for index in range(self._size):
            self._slots[index] = sentinel

    def raw(self) -> tuple[int, ...]:
        """Snapshot of all slots, mostly for diagnostics and tests."""
        self.ensure_live()
        return tuple(self._slots)

    def release(self) -> None:
        """Drop the buffer. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self._slots = array(_SLOT_TYPECODE)
