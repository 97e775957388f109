#!/usr/bin/env python3
"""
Pattern engine backed by the ``regex`` package.

Patterns and subjects are handled as bytes, so every offset the engine writes
into a scratch buffer is a byte offset. ``regex`` is used rather than the
standard ``re`` module because it supports partial matching and per-call
timeouts.

Differences from PCRE2 worth knowing:

- With ``DUPNAMES``, groups that share a name also share one group number,
  so ``(?P<n>a)|(?P<n>b)`` has a single capture group. Looking such a name
  up reports ``ERROR_NOUNIQUESUBSTRING``.
- ``PARTIAL_HARD`` prefers a partial match at the same start position even
  when a complete match was found before the end of the subject was reached
  (``abc|abcd`` against ``abc``).
"""
from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import regex

from ..constants import (
    ANCHORED,
    CASELESS,
    DOTALL,
    DUPNAMES,
    ENDANCHORED,
    ERROR_BAD_OPTIONS,
    ERROR_BAD_SUBPATTERN_REFERENCE,
    ERROR_BADOFFSET,
    ERROR_BADOPTION,
    ERROR_CLASS_RANGE_ORDER,
    ERROR_DUPLICATE_SUBPATTERN_NAME,
    ERROR_END_BACKSLASH,
    ERROR_INVALID_AFTER_PARENS_QUERY,
    ERROR_INVALID_SUBPATTERN_NAME,
    ERROR_JIT_BADOPTION,
    ERROR_MATCHLIMIT,
    ERROR_MISSING_CLOSING_PARENTHESIS,
    ERROR_MISSING_NAME_TERMINATOR,
    ERROR_MISSING_SQUARE_BRACKET,
    ERROR_NOMATCH,
    ERROR_NOMEMORY,
    ERROR_NOSUBSTRING,
    ERROR_NOUNIQUESUBSTRING,
    ERROR_NULL,
    ERROR_PARTIAL,
    ERROR_QUANTIFIER_INVALID,
    ERROR_QUANTIFIER_OUT_OF_ORDER,
    ERROR_UNKNOWN_ESCAPE,
    ERROR_UNMATCHED_CLOSING_PARENTHESIS,
    EXTENDED,
    INFO_ALLOPTIONS,
    INFO_ARGOPTIONS,
    INFO_CAPTURECOUNT,
    INFO_JITSIZE,
    INFO_NAMECOUNT,
    INFO_NAMETABLE,
    INFO_SIZE,
    JIT_ALL,
    LITERAL,
    MULTILINE,
    NO_JIT,
    NO_UTF_CHECK,
    PARTIAL_HARD,
    PARTIAL_SOFT,
    UCP,
    UTF,
    error_message,
)
from ..core.logging import get_logger
from ..scratch import MatchScratch
from .base import CompileResult, PatternEngine

logger = get_logger(__name__)

_FLAG_MAP = (
    (CASELESS, regex.IGNORECASE),
    (MULTILINE, regex.MULTILINE),
    (DOTALL, regex.DOTALL),
    (EXTENDED, regex.VERBOSE),
)

# Accepted but without effect: the engine works on bytes.
_IGNORED_COMPILE_FLAGS = UTF | UCP | NO_UTF_CHECK

_SUPPORTED_COMPILE_FLAGS = (
    CASELESS | MULTILINE | DOTALL | EXTENDED | DUPNAMES | LITERAL
    | ANCHORED | ENDANCHORED | _IGNORED_COMPILE_FLAGS
)
_SUPPORTED_MATCH_FLAGS = ANCHORED | NO_UTF_CHECK | PARTIAL_SOFT | PARTIAL_HARD | NO_JIT

# Ordered: the first prefix that matches the engine message wins.
_SYNTAX_ERROR_CODES = (
    ("missing )", ERROR_MISSING_CLOSING_PARENTHESIS),
    ("unbalanced parenthesis", ERROR_UNMATCHED_CLOSING_PARENTHESIS),
    ("unterminated character set", ERROR_MISSING_SQUARE_BRACKET),
    ("bad character range", ERROR_CLASS_RANGE_ORDER),
    ("nothing to repeat", ERROR_QUANTIFIER_INVALID),
    ("multiple repeat", ERROR_QUANTIFIER_INVALID),
    ("min repeat greater than max repeat", ERROR_QUANTIFIER_OUT_OF_ORDER),
    ("bad escape (end of pattern)", ERROR_END_BACKSLASH),
    ("bad escape", ERROR_UNKNOWN_ESCAPE),
    ("unknown group", ERROR_BAD_SUBPATTERN_REFERENCE),
    ("invalid group reference", ERROR_BAD_SUBPATTERN_REFERENCE),
    ("missing >", ERROR_MISSING_NAME_TERMINATOR),
    ("bad character in group name", ERROR_INVALID_SUBPATTERN_NAME),
    ("unknown extension", ERROR_INVALID_AFTER_PARENS_QUERY),
)

# Escapes and character classes are consumed whole, so group syntax inside
# them never reads as a definition. Only the last alternative captures.
_GROUP_SCAN = regex.compile(
    rb"\\.|\[\^?\]?(?:\\.|[^\]\\])*\]|\(\?P?<([A-Za-z_]\w*)>",
    regex.DOTALL,
)

_END_ANCHOR_PREFIX = b"(?:"


@dataclass(eq=False)
class RegexHandle:
    """Compiled program plus the static facts the core asks about."""

    code: Any
    source: bytes
    program: bytes
    flags: int
    regex_flags: int
    verbose: bool
    anchored: bool
    capture_count: int
    name_table: dict[str, int]
    shared_names: frozenset = frozenset()
    jit_flags: int = 0
    bound_search: Optional[Callable[..., Any]] = field(default=None, repr=False)
    bound_match: Optional[Callable[..., Any]] = field(default=None, repr=False)
    continuation: Any = field(default=None, repr=False)


def _syntax_error_code(message: str) -> int | None:
    for prefix, code in _SYNTAX_ERROR_CODES:
        if message.startswith(prefix):
            return code
    return None


def _group_names(pattern: bytes) -> list[tuple[str, int]]:
    """Named group definitions in pattern order, with their byte offsets."""
    return [
        (found.group(1).decode("ascii"), found.start())
        for found in _GROUP_SCAN.finditer(pattern)
        if found.group(1) is not None
    ]


def _terminated(program: bytes, verbose: bool) -> bytes:
    # A trailing comment in verbose mode would swallow whatever follows.
    return program + b"\n" if verbose else program


class RegexEngine(PatternEngine):
    """``PatternEngine`` implementation on top of ``regex``."""

    name = "regex"

    def __init__(self, match_timeout: float | None = None):
        self.match_timeout = match_timeout

    def compile(self, pattern: bytes, flags: int) -> CompileResult:
        if flags & ~_SUPPORTED_COMPILE_FLAGS:
            return CompileResult(None, ERROR_BAD_OPTIONS, 0)

        source = re.escape(pattern) if flags & LITERAL else pattern

        regex_flags = 0
        for bit, regex_flag in _FLAG_MAP:
            if flags & bit:
                regex_flags |= regex_flag

        # The pattern is validated as written before any wrapping, so syntax
        # errors and their offsets refer to the caller's text.
        program = source
        prefix_len = 0
        try:
            code = regex.compile(source, regex_flags)
            verbose = bool(code.flags & regex.VERBOSE)
            if flags & ENDANCHORED:
                program = _END_ANCHOR_PREFIX + _terminated(source, verbose) + b")\\Z"
                prefix_len = len(_END_ANCHOR_PREFIX)
                code = regex.compile(program, regex_flags)
        except regex.error as e:
            position = e.pos if e.pos is not None else len(program)
            offset = min(max(position - prefix_len, 0), len(pattern))
            return CompileResult(None, _syntax_error_code(e.msg), offset, e.msg)

        names = [] if flags & LITERAL else _group_names(source)
        seen: set[str] = set()
        shared: set[str] = set()
        for name, offset in names:
            if name in seen:
                if not flags & DUPNAMES:
                    return CompileResult(None, ERROR_DUPLICATE_SUBPATTERN_NAME, offset)
                shared.add(name)
            seen.add(name)

        handle = RegexHandle(
            code=code,
            source=pattern,
            program=program,
            flags=flags,
            regex_flags=regex_flags,
            verbose=verbose,
            anchored=bool(flags & ANCHORED),
            capture_count=code.groups,
            name_table=dict(code.groupindex),
            shared_names=frozenset(shared),
        )
        return CompileResult(handle)

    def jit(self, handle: RegexHandle, flags: int) -> int:
        if handle.code is None:
            return ERROR_NULL
        if not flags or flags & ~JIT_ALL:
            return ERROR_JIT_BADOPTION
        if handle.bound_search is None:
            handle.bound_search = functools.partial(handle.code.search, timeout=self.match_timeout)
            handle.bound_match = functools.partial(handle.code.match, timeout=self.match_timeout)
        handle.jit_flags |= flags
        logger.debug(f"Bound accelerated entry points (jit flags {handle.jit_flags:#x})")
        return 0

    def pattern_info(self, handle: RegexHandle, kind: int) -> Any:
        if kind == INFO_CAPTURECOUNT:
            return handle.capture_count
        if kind == INFO_NAMECOUNT:
            return len(handle.name_table)
        if kind == INFO_NAMETABLE:
            return dict(handle.name_table)
        if kind in (INFO_ALLOPTIONS, INFO_ARGOPTIONS):
            return handle.flags
        if kind == INFO_JITSIZE:
            return handle.jit_flags
        if kind == INFO_SIZE:
            return len(handle.source)
        raise ValueError(f"Unsupported pattern info kind: {kind}")

    def _finder(self, handle: RegexHandle, anchored: bool, use_jit: bool) -> Callable[..., Any]:
        if use_jit and handle.bound_search is not None:
            return handle.bound_match if anchored else handle.bound_search
        finder = handle.code.match if anchored else handle.code.search
        return functools.partial(finder, timeout=self.match_timeout)

    def _continuation(self, handle: RegexHandle, anchored: bool) -> Callable[..., Any]:
        """
        Finder for a program that can never complete.

        A partial search with it only succeeds where the pattern itself ran
        into the end of the subject while it could still consume more.
        """
        if handle.continuation is None:
            source = b"(?:" + _terminated(handle.program, handle.verbose) + b")(?!)"
            handle.continuation = regex.compile(source, handle.regex_flags)
        finder = handle.continuation.match if anchored else handle.continuation.search
        return functools.partial(finder, timeout=self.match_timeout)

    def execute(
        self,
        handle: RegexHandle,
        subject: bytes,
        start_offset: int,
        flags: int,
        scratch: MatchScratch,
    ) -> int:
        scratch.clear()
        if handle.code is None:
            return ERROR_NULL
        if flags & ~_SUPPORTED_MATCH_FLAGS:
            return ERROR_BADOPTION
        if not 0 <= start_offset <= len(subject):
            return ERROR_BADOFFSET

        anchored = handle.anchored or bool(flags & ANCHORED)
        finder = self._finder(handle, anchored=anchored, use_jit=not flags & NO_JIT)

        try:
            if flags & PARTIAL_HARD:
                found = finder(subject, pos=start_offset, partial=True)
                if found is not None and not found.partial:
                    # Hard mode: running off the end at or before the
                    # complete match's start beats the complete match.
                    pending = self._continuation(handle, anchored)(subject, pos=start_offset, partial=True)
                    if pending is not None and pending.start() <= found.start():
                        found = pending
            else:
                found = finder(subject, pos=start_offset)
                if found is None and flags & PARTIAL_SOFT:
                    found = finder(subject, pos=start_offset, partial=True)
        except TimeoutError:
            return ERROR_MATCHLIMIT
        except MemoryError:
            return ERROR_NOMEMORY

        if found is None:
            return ERROR_NOMATCH

        if found.partial:
            scratch.set_span(0, found.start(), len(subject))
            return ERROR_PARTIAL

        highest = 0
        for group in range(handle.capture_count + 1):
            start, end = found.span(group)
            if start >= 0:
                scratch.set_span(group, start, end)
                highest = group
        return highest + 1

    def error_message(self, code: int) -> str:
        return error_message(code)

    def substring_number_from_name(self, handle: RegexHandle, name: str) -> int:
        if handle.code is None:
            return ERROR_NULL
        if name in handle.shared_names:
            return ERROR_NOUNIQUESUBSTRING
        return handle.name_table.get(name, ERROR_NOSUBSTRING)

    def free(self, handle: RegexHandle) -> None:
        handle.code = None
        handle.bound_search = None
        handle.bound_match = None
        handle.continuation = None
