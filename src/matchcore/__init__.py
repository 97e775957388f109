"""
matchcore - Compile-once, match-many regular expressions with PCRE2 semantics.

This package provides:
- Compiled patterns: immutable, shareable, released exactly once
- Matchers: reusable match state with a fixed-size offset buffer
- Capture queries by group index or name, with byte offsets
- One-shot search and global replace
- A thread-safe cache of compiled patterns
"""

__version__ = "1.0.0"
__author__ = "GOOBITS Team"

from .captures import CaptureView
from .errors import (
    CompileError,
    GroupNameError,
    InvalidPatternError,
    JITError,
    MatchCoreError,
    MatcherStateError,
    MatchError,
    ProgrammerError,
    UseAfterFreeError,
)
from .matcher import Matcher, MatcherState
from .ops import find_index, find_index_string, replace_all, replace_all_string
from .pattern import CompiledPattern, compile, compile_jit, must_compile, must_compile_jit
from .pattern_cache import PatternCache, cached_compile, clear_cache, configure_cache, get_cache_stats
from .scratch import MatchScratch, unset_sentinel

__all__ = [
    "CaptureView",
    "CompileError",
    "CompiledPattern",
    "GroupNameError",
    "InvalidPatternError",
    "JITError",
    "MatchCoreError",
    "MatchError",
    "MatchScratch",
    "Matcher",
    "MatcherState",
    "MatcherStateError",
    "PatternCache",
    "ProgrammerError",
    "UseAfterFreeError",
    "cached_compile",
    "clear_cache",
    "compile",
    "compile_jit",
    "configure_cache",
    "find_index",
    "find_index_string",
    "get_cache_stats",
    "must_compile",
    "must_compile_jit",
    "replace_all",
    "replace_all_string",
    "unset_sentinel",
]
