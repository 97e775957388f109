#!/usr/bin/env python3
"""
Reusable matcher objects.

A ``Matcher`` binds one ``CompiledPattern`` and owns one ``MatchScratch``
sized from that pattern's group count. Each ``match`` call overwrites the
scratch and replaces the retained subject, so a matcher can be reused
indefinitely, but it is mutable state: confine it to one thread at a time.

State machine::

    UNBOUND --init--> BOUND_NO_RESULT --match--> MATCHED | PARTIAL | NO_MATCH | ERROR
                      ^                                                        |
                      +--------------------- init / match ---------------------+
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from .captures import CaptureView
from .constants import ERROR_NOMATCH, ERROR_PARTIAL
from .core.logging import get_logger
from .errors import InvalidPatternError, MatchError, MatcherStateError
from .pattern import CompiledPattern
from .scratch import MatchScratch

logger = get_logger(__name__)


class MatcherState(Enum):
    UNBOUND = "unbound"
    BOUND_NO_RESULT = "bound_no_result"
    MATCHED = "matched"
    PARTIAL = "partial"
    NO_MATCH = "no_match"
    ERROR = "error"


_RESULT_STATES = (MatcherState.MATCHED, MatcherState.PARTIAL)


class Matcher(CaptureView):
    """Holds the result of the latest match of a bound pattern against a subject."""

    def __init__(self, pattern: CompiledPattern | None = None):
        self._pattern: Optional[CompiledPattern] = None
        self._scratch: Optional[MatchScratch] = None
        self._status: Optional[int] = None
        self._state = MatcherState.UNBOUND
        self._subject: Optional[bytes] = None
        self._text: Optional[str] = None
        if pattern is not None:
            self.init(pattern)

    def __repr__(self) -> str:
        pattern = self._pattern.pattern if self._pattern is not None else None
        return f"<Matcher pattern={pattern!r} state={self._state.name}>"

    def __enter__(self) -> Matcher:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.free()

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def init(self, pattern: CompiledPattern) -> None:
        """
        Bind this matcher to ``pattern``.

        The scratch buffer is kept when its size already fits the pattern's
        group count; otherwise a new one is allocated.

        Raises:
            InvalidPatternError: If ``pattern`` is not a live compiled pattern.
        """
        if not isinstance(pattern, CompiledPattern):
            raise InvalidPatternError(f"Matcher.init: expected CompiledPattern, got {type(pattern).__name__}")
        if pattern.freed:
            raise InvalidPatternError(f"Matcher.init: pattern {pattern.pattern!r} has been released")

        groups = pattern.groups
        scratch = self._scratch
        if scratch is None or scratch.released or scratch.groups != groups:
            if scratch is not None:
                scratch.release()
            self._scratch = MatchScratch(groups)
            logger.debug(f"Allocated match scratch for {groups} group(s)")

        self._pattern = pattern
        self._status = None
        self._state = MatcherState.BOUND_NO_RESULT
        self._subject = None
        self._text = None

    def reset(self, pattern: CompiledPattern, subject: bytes, flags: int = 0) -> bool:
        """Bind to ``pattern`` and match ``subject``."""
        self.init(pattern)
        return self.match(subject, flags)

    def reset_string(self, pattern: CompiledPattern, subject: str, flags: int = 0) -> bool:
        """Bind to ``pattern`` and match the text ``subject``."""
        self.init(pattern)
        return self.match_string(subject, flags)

    def free(self) -> None:
        """Release the scratch buffer. Later capture queries fail fast."""
        if self._scratch is not None:
            self._scratch.release()
        self._subject = None
        self._text = None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def match(self, subject: bytes, flags: int = 0) -> bool:
        """
        Try to match ``subject`` from offset 0.

        Returns:
            True on a full or partial match
        """
        self.exec(subject, flags)
        return self.matches

    def match_string(self, subject: str, flags: int = 0) -> bool:
        """Text variant of ``match``; offsets refer to the UTF-8 encoding."""
        self.exec_string(subject, flags)
        return self.matches

    def exec(self, subject: bytes, flags: int = 0) -> int:
        """Like ``match`` but returns the engine's raw status code."""
        if isinstance(subject, str):
            raise TypeError("Matcher.exec: text subjects go through exec_string/match_string")
        return self._execute(bytes(subject), None, flags)

    def exec_string(self, subject: str, flags: int = 0) -> int:
        """Text variant of ``exec``."""
        return self._execute(subject.encode("utf-8"), subject, flags)

    def _execute(self, subject: bytes, text: str | None, flags: int) -> int:
        pattern = self._pattern
        if pattern is None:
            raise MatcherStateError("match", self._state)
        self._scratch.ensure_live()
        handle = pattern.handle

        self._subject = subject
        self._text = text
        rc = pattern.engine.execute(handle, subject, 0, flags, self._scratch)
        self._record(rc)
        return rc

    def _record(self, rc: int) -> None:
        self._status = rc
        if rc >= 0:
            self._state = MatcherState.MATCHED
        elif rc == ERROR_PARTIAL:
            self._state = MatcherState.PARTIAL
        elif rc == ERROR_NOMATCH:
            self._state = MatcherState.NO_MATCH
        else:
            self._state = MatcherState.ERROR
            logger.warning(
                f"Engine error {rc} matching {self._pattern.pattern!r}: "
                f"{self._pattern.engine.error_message(rc)}"
            )

    # ------------------------------------------------------------------
    # Outcome
    # ------------------------------------------------------------------

    @property
    def state(self) -> MatcherState:
        return self._state

    @property
    def pattern(self) -> CompiledPattern | None:
        return self._pattern

    @property
    def status(self) -> int | None:
        """Raw status code of the last attempt (None before the first one)."""
        return self._status

    @property
    def matches(self) -> bool:
        """True if the last attempt produced a full or partial match."""
        return self._state in _RESULT_STATES

    @property
    def partial(self) -> bool:
        return self._state is MatcherState.PARTIAL

    @property
    def groups(self) -> int:
        """Number of capture groups of the bound pattern."""
        if self._scratch is None:
            raise MatcherStateError("groups", self._state)
        return self._scratch.groups

    def has_error(self) -> bool:
        """True if the last attempt ended in an engine error (not a plain non-match)."""
        return self._state is MatcherState.ERROR

    def get_error(self) -> MatchError | None:
        """The engine error of the last attempt, or None if there was none."""
        if not self.has_error():
            return None
        return MatchError(self._status, self._pattern.engine.error_message(self._status))

    def index(self) -> tuple[int, int] | None:
        """``(start, end)`` of the whole match, or None when not matched."""
        if not self.matches:
            return None
        return self._capture_scratch("index").span(0)

    # ------------------------------------------------------------------
    # CaptureView hooks
    # ------------------------------------------------------------------

    def _capture_scratch(self, operation: str) -> MatchScratch:
        scratch = self._scratch
        if scratch is None:
            raise MatcherStateError(operation, self._state)
        scratch.ensure_live()
        if self._state not in _RESULT_STATES:
            raise MatcherStateError(operation, self._state)
        return scratch

    def _has_result(self) -> bool:
        return self.matches

    def _resolve_name(self, name: str) -> int:
        if self._pattern is None:
            raise MatcherStateError("name_to_index", self._state)
        return self._pattern.name_to_index(name)
