#!/usr/bin/env python3
"""
Compiled patterns and the compile entry points.

A ``CompiledPattern`` wraps the engine's compiled form together with the
static facts derived from it right after compilation (group count and
named-group table). It is immutable, may be shared by any number of matchers
and threads, and is released exactly once: explicitly through ``free()`` or
by leaving a ``with`` block.

Usage:
    with compile(r"(?P<year>\\d{4})-(\\d{2})") as pattern:
        matcher = pattern.matcher_string("on 2024-05", 0)
        matcher.named_string("year")  # "2024"
"""
from __future__ import annotations

import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from .constants import INFO_CAPTURECOUNT, INFO_NAMETABLE, JIT_COMPLETE
from .core.logging import get_logger
from .engine import PatternEngine, get_default_engine
from .errors import CompileError, GroupNameError, JITError, ProgrammerError, UseAfterFreeError

if TYPE_CHECKING:
    from .matcher import Matcher

logger = get_logger(__name__)


class CompiledPattern:
    """Immutable compiled regular expression plus its static metadata."""

    def __init__(self, pattern: str, flags: int, engine: PatternEngine, handle: Any):
        self.pattern = pattern
        self.flags = flags
        self.engine = engine
        self._handle = handle
        self._release_lock = threading.Lock()
        self._jit_flags = 0
        self._groups: int = engine.pattern_info(handle, INFO_CAPTURECOUNT)
        self._name_table: Mapping[str, int] = MappingProxyType(engine.pattern_info(handle, INFO_NAMETABLE))

    def __repr__(self) -> str:
        state = " freed" if self.freed else ""
        return f"<CompiledPattern {self.pattern!r} groups={self._groups}{state}>"

    def __enter__(self) -> CompiledPattern:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.free()

    @property
    def freed(self) -> bool:
        return self._handle is None

    def _ensure_live(self) -> Any:
        handle = self._handle
        if handle is None:
            raise UseAfterFreeError(f"pattern {self.pattern!r} used after release")
        return handle

    @property
    def handle(self) -> Any:
        """The engine handle; fails fast once the pattern has been released."""
        return self._ensure_live()

    @property
    def groups(self) -> int:
        """Number of capture groups, not counting the whole match."""
        self._ensure_live()
        return self._groups

    @property
    def name_table(self) -> Mapping[str, int]:
        """Read-only mapping of group name to group index."""
        self._ensure_live()
        return self._name_table

    @property
    def jit_compiled(self) -> bool:
        return bool(self._jit_flags)

    def info(self, kind: int) -> Any:
        """Raw pattern information from the engine (see ``constants.INFO_*``)."""
        return self.engine.pattern_info(self.handle, kind)

    def jit_compile(self, flags: int = JIT_COMPLETE) -> None:
        """
        Add the engine's accelerated form to this pattern.

        Calling again after a success is harmless. A failure leaves the
        pattern fully usable without acceleration.

        Raises:
            JITError: If the engine rejects the request; ``error.pattern`` is self.
        """
        rc = self.engine.jit(self.handle, flags)
        if rc != 0:
            message = self.engine.error_message(rc)
            logger.warning(f"JIT compilation failed for {self.pattern!r}: {message}")
            raise JITError(rc, message, self)
        self._jit_flags |= flags

    def name_to_index(self, name: str) -> int:
        """
        Resolve a group name to its index.

        Raises:
            GroupNameError: If no group has that name.
        """
        group = self.engine.substring_number_from_name(self.handle, name)
        if group < 0:
            raise GroupNameError(name, group)
        return group

    def free(self) -> None:
        """Release the compiled form. Further calls are no-ops."""
        with self._release_lock:
            handle, self._handle = self._handle, None
        if handle is None:
            return
        self.engine.free(handle)
        logger.debug(f"Released compiled pattern {self.pattern!r}")

    def new_matcher(self) -> Matcher:
        from .matcher import Matcher

        return Matcher(self)

    def matcher(self, subject: bytes, flags: int = 0) -> Matcher:
        """New matcher with a first match already attempted against ``subject``."""
        matcher = self.new_matcher()
        matcher.match(subject, flags)
        return matcher

    def matcher_string(self, subject: str, flags: int = 0) -> Matcher:
        """Text variant of ``matcher``."""
        matcher = self.new_matcher()
        matcher.match_string(subject, flags)
        return matcher

    def find_index(self, subject: bytes, flags: int = 0) -> tuple[int, int] | None:
        from .ops import find_index

        return find_index(self, subject, flags)

    def find_index_string(self, subject: str, flags: int = 0) -> tuple[int, int] | None:
        from .ops import find_index_string

        return find_index_string(self, subject, flags)

    def replace_all(self, subject: bytes, replacement: bytes, flags: int = 0) -> bytes:
        from .ops import replace_all

        return replace_all(self, subject, replacement, flags)

    def replace_all_string(self, subject: str, replacement: str, flags: int = 0) -> str:
        from .ops import replace_all_string

        return replace_all_string(self, subject, replacement, flags)


def compile(pattern: str, flags: int = 0, *, engine: PatternEngine | None = None) -> CompiledPattern:
    """
    Compile ``pattern`` into a reusable ``CompiledPattern``.

    Args:
        pattern: Regular expression text
        flags: Compile option bits, passed to the engine unmodified
        engine: Engine to compile with (defaults to the configured engine)

    Returns:
        The compiled pattern

    Raises:
        CompileError: If the pattern contains a NUL character or the engine
            rejects it. ``offset`` is the byte position of the problem.
    """
    nul_at = pattern.find("\x00")
    if nul_at >= 0:
        raise CompileError(pattern, "NUL byte in pattern", len(pattern[:nul_at].encode("utf-8")))

    if engine is None:
        engine = get_default_engine()

    result = engine.compile(pattern.encode("utf-8"), flags)
    if result.handle is None:
        if result.error_message:
            message = result.error_message
        elif result.error_code is not None:
            message = engine.error_message(result.error_code)
        else:
            message = "unknown compile error"
        logger.debug(f"Compilation of {pattern!r} failed at offset {result.error_offset}: {message}")
        raise CompileError(pattern, message, result.error_offset, result.error_code)

    return CompiledPattern(pattern, flags, engine, result.handle)


def compile_jit(
    pattern: str,
    compile_flags: int = 0,
    jit_flags: int = JIT_COMPLETE,
    *,
    engine: PatternEngine | None = None,
) -> CompiledPattern:
    """
    Compile ``pattern`` and then JIT-compile it.

    Raises:
        CompileError: If compilation fails.
        JITError: If acceleration fails; the compiled pattern is on ``error.pattern``.
    """
    compiled = compile(pattern, compile_flags, engine=engine)
    compiled.jit_compile(jit_flags)
    return compiled


def must_compile(pattern: str, flags: int = 0, *, engine: PatternEngine | None = None) -> CompiledPattern:
    """Like ``compile``, for patterns whose failure is a bug in the caller."""
    try:
        return compile(pattern, flags, engine=engine)
    except CompileError as e:
        raise ProgrammerError(f"invalid pattern {pattern!r}: {e}") from e


def must_compile_jit(
    pattern: str,
    compile_flags: int = 0,
    jit_flags: int = JIT_COMPLETE,
    *,
    engine: PatternEngine | None = None,
) -> CompiledPattern:
    """Like ``compile_jit``, for patterns whose failure is a bug in the caller."""
    try:
        return compile_jit(pattern, compile_flags, jit_flags, engine=engine)
    except JITError as e:
        if e.pattern is not None:
            e.pattern.free()
        raise ProgrammerError(f"cannot JIT-compile pattern {pattern!r}: {e}") from e
    except CompileError as e:
        raise ProgrammerError(f"invalid pattern {pattern!r}: {e}") from e
