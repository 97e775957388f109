#!/usr/bin/env python3
"""
Error taxonomy for matchcore.

Two families live here:

- ``MatchCoreError`` and its subclasses are recoverable runtime conditions
  (a bad pattern, a failed JIT step, an engine error during matching, an
  unknown group name). Callers are expected to catch them.
- ``ProgrammerError`` and its subclasses signal a broken caller contract
  (using a released pattern or scratch buffer, binding an invalid pattern,
  querying captures in a state that has none). They fail fast and are not
  meant to be caught in normal control flow.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .constants import ERROR_NOUNIQUESUBSTRING

if TYPE_CHECKING:
    from .pattern import CompiledPattern


class MatchCoreError(Exception):
    """Base class for recoverable matchcore errors."""
    pass


class CompileError(MatchCoreError):
    """Raised when a pattern cannot be compiled.

    ``offset`` is the byte position in the pattern at which the problem was
    detected; ``code`` is the engine's compile error code when it has one.
    """

    def __init__(self, pattern: str, message: str, offset: int, code: int | None = None):
        self.pattern = pattern
        self.message = message
        self.offset = offset
        self.code = code
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"compilation failed at offset {self.offset}: {self.message}"


class JITError(MatchCoreError):
    """Raised when the acceleration step fails.

    The compiled pattern stays valid; it is carried on ``pattern`` so callers
    that treat JIT as optional can keep using it.
    """

    def __init__(self, code: int, message: str, pattern: CompiledPattern | None = None):
        self.code = code
        self.message = message
        self.pattern = pattern
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"JIT compilation failed: {self.message}"


class MatchError(MatchCoreError):
    """A genuine engine error from a match attempt (not a plain non-match)."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"matching failed: {self.message}"


class GroupNameError(MatchCoreError, LookupError):
    """Raised when a group name does not resolve to a capture group."""

    def __init__(self, name: str, code: int):
        self.name = name
        self.code = code
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.code == ERROR_NOUNIQUESUBSTRING:
            return f"group name is not unique: {self.name!r}"
        return f"unknown group name: {self.name!r}"


class ProgrammerError(RuntimeError):
    """Base class for caller contract violations."""
    pass


class UseAfterFreeError(ProgrammerError):
    """A released pattern or scratch buffer was used."""
    pass


class InvalidPatternError(ProgrammerError):
    """A matcher was bound to something that is not a live compiled pattern."""
    pass


class MatcherStateError(ProgrammerError):
    """An operation was requested in a matcher state that does not support it."""

    def __init__(self, operation: str, state: Any):
        self.operation = operation
        self.state = state
        super().__init__(f"{operation}: not valid in state {getattr(state, 'name', state)}")
