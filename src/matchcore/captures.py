#!/usr/bin/env python3
"""
Capture-group queries over a matcher's most recent result.

``CaptureView`` translates the raw offset pairs of a ``MatchScratch`` into
byte ranges, strings and presence flags, and resolves group names to
indices. It stores nothing of its own: ``Matcher`` mixes it in and supplies
the scratch buffer and the retained subject through the hooks below.

Offsets are byte offsets. For text subjects they index the UTF-8 encoding.
An absent group (one that did not take part in the match) is reported as
``None``; a group that matched the empty string is ``b""`` / ``""``.
"""
from __future__ import annotations

from typing import Optional

from .scratch import MatchScratch


class CaptureView:
    """Accessor layer for capture groups. Mixed into ``Matcher``."""

    # Supplied by the host class.
    _subject: Optional[bytes]
    _text: Optional[str]

    def _capture_scratch(self, operation: str) -> MatchScratch:
        """Scratch buffer holding a match result, or raise if there is none."""
        raise NotImplementedError

    def _has_result(self) -> bool:
        raise NotImplementedError

    def _resolve_name(self, name: str) -> int:
        raise NotImplementedError

    def _slice_text(self, start: int, end: int) -> str:
        text = self._text
        if text is not None and len(text) == len(self._subject):
            # ASCII-only text: byte offsets are character offsets
            return text[start:end]
        return self._subject[start:end].decode("utf-8", errors="replace")

    def present(self, group: int) -> bool:
        """True if ``group`` took part in the last match (possibly matching "")."""
        return self._capture_scratch("present").is_set(group)

    def group_indices(self, group: int) -> tuple[int, int] | None:
        """``(start, end)`` byte offsets of ``group``, or None when absent."""
        return self._capture_scratch("group_indices").span(group)

    def group(self, group: int) -> bytes | None:
        """Bytes captured by ``group``, or None when absent."""
        span = self._capture_scratch("group").span(group)
        if span is None:
            return None
        start, end = span
        return self._subject[start:end]

    def group_string(self, group: int) -> str | None:
        """Text captured by ``group``, or None when absent."""
        span = self._capture_scratch("group_string").span(group)
        if span is None:
            return None
        return self._slice_text(*span)

    def extract(self) -> list[bytes | None] | None:
        """
        Whole match and every group in one pass.

        Returns:
            None if the last attempt did not match; otherwise a list where
            element 0 is the whole match and element ``g`` is group ``g``
            (None for absent groups)
        """
        if not self._has_result():
            return None
        scratch = self._capture_scratch("extract")
        subject = self._subject
        result: list[bytes | None] = []
        for group in range(scratch.groups + 1):
            span = scratch.span(group)
            result.append(None if span is None else subject[span[0]:span[1]])
        return result

    def extract_string(self) -> list[str | None] | None:
        """Text variant of ``extract``."""
        if not self._has_result():
            return None
        scratch = self._capture_scratch("extract_string")
        result: list[str | None] = []
        for group in range(scratch.groups + 1):
            span = scratch.span(group)
            result.append(None if span is None else self._slice_text(*span))
        return result

    def name_to_index(self, name: str) -> int:
        """
        Resolve a group name.

        Raises:
            GroupNameError: If the bound pattern has no group called ``name``.
        """
        return self._resolve_name(name)

    def named(self, name: str) -> bytes | None:
        return self.group(self._resolve_name(name))

    def named_string(self, name: str) -> str | None:
        return self.group_string(self._resolve_name(name))

    def named_present(self, name: str) -> bool:
        return self.present(self._resolve_name(name))
