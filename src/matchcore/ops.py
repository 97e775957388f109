#!/usr/bin/env python3
"""
One-shot search and global replace built on ``Matcher``.

``replace_all`` matches against a shrinking view of the subject: after each
match the part already consumed is dropped and the next attempt starts at
offset 0 of what remains. Anchors such as ``^`` therefore apply to the start
of the remaining view, not of the original subject.

A zero-length match copies the next unit of the remainder (one byte, or one
UTF-8 character in the text variant) to the output and continues after it,
so every iteration consumes input. This gives the familiar results
``x*`` on ``"abc"`` with ``"-"`` -> ``"-a-b-c-"``.
"""
from __future__ import annotations

from .core.logging import LogContext, get_logger
from .matcher import Matcher
from .pattern import CompiledPattern

logger = get_logger(__name__)


def _byte_unit(remaining: bytes, at: int) -> int:
    return 1


def _utf8_unit(remaining: bytes, at: int) -> int:
    """Length of the UTF-8 sequence starting at ``remaining[at]``."""
    lead = remaining[at]
    if lead >= 0xF0:
        width = 4
    elif lead >= 0xE0:
        width = 3
    elif lead >= 0xC0:
        width = 2
    else:
        width = 1
    return min(width, len(remaining) - at)


def _find(matcher: Matcher, subject: bytes, flags: int) -> tuple[int, int] | None:
    matcher.exec(subject, flags)
    if matcher.has_error():
        raise matcher.get_error()
    return matcher.index()


def find_index(pattern: CompiledPattern, subject: bytes, flags: int = 0) -> tuple[int, int] | None:
    """
    Locate the first match of ``pattern`` in ``subject``.

    Returns:
        ``(start, end)`` byte offsets of the whole match, or None

    Raises:
        MatchError: If the engine reports a genuine error.
    """
    with Matcher(pattern) as matcher:
        return _find(matcher, bytes(subject), flags)


def find_index_string(pattern: CompiledPattern, subject: str, flags: int = 0) -> tuple[int, int] | None:
    """Text variant of ``find_index``; offsets index the UTF-8 encoding."""
    return find_index(pattern, subject.encode("utf-8"), flags)


def _replace(
    pattern: CompiledPattern,
    subject: bytes,
    replacement: bytes,
    flags: int,
    unit,
) -> bytes:
    output = bytearray()
    remaining = subject
    replaced = 0

    with LogContext(operation="replace_all", pattern=pattern.pattern), Matcher(pattern) as matcher:
        while True:
            span = _find(matcher, remaining, flags)
            if span is None:
                break
            start, end = span
            output += remaining[:start]
            output += replacement
            replaced += 1

            if end > start:
                remaining = remaining[end:]
                continue
            if end >= len(remaining):
                remaining = b""
                break
            step = unit(remaining, end)
            output += remaining[end:end + step]
            remaining = remaining[end + step:]

        output += remaining
        logger.debug(f"Replaced {replaced} match(es) in {len(subject)} byte subject")

    return bytes(output)


def replace_all(pattern: CompiledPattern, subject: bytes, replacement: bytes, flags: int = 0) -> bytes:
    """
    Replace every match of ``pattern`` in ``subject`` with ``replacement``.

    The replacement is inserted literally; group references are not expanded.

    Raises:
        MatchError: If the engine reports a genuine error.
    """
    return _replace(pattern, bytes(subject), bytes(replacement), flags, _byte_unit)


def replace_all_string(pattern: CompiledPattern, subject: str, replacement: str, flags: int = 0) -> str:
    """Text variant of ``replace_all``."""
    result = _replace(
        pattern,
        subject.encode("utf-8"),
        replacement.encode("utf-8"),
        flags,
        _utf8_unit,
    )
    return result.decode("utf-8", errors="replace")
