#!/usr/bin/env python3
"""
Option bits, status codes and diagnostic messages shared by the core and its engines.

The numeric values follow PCRE2 so callers familiar with that library can pass
the same option words. The core never interprets option bits itself; it hands
them to the pattern engine unmodified.
"""
from __future__ import annotations

# ==============================================================================
# OPTION BITS
# ==============================================================================

# Valid at compile time and at match time.
ANCHORED = 0x80000000
NO_UTF_CHECK = 0x40000000
ENDANCHORED = 0x20000000

# Compile-time only.
ALLOW_EMPTY_CLASS = 0x00000001
ALT_BSUX = 0x00000002
AUTO_CALLOUT = 0x00000004
CASELESS = 0x00000008
DOLLAR_ENDONLY = 0x00000010
DOTALL = 0x00000020
DUPNAMES = 0x00000040
EXTENDED = 0x00000080
FIRSTLINE = 0x00000100
MATCH_UNSET_BACKREF = 0x00000200
MULTILINE = 0x00000400
NEVER_UCP = 0x00000800
NEVER_UTF = 0x00001000
NO_AUTO_CAPTURE = 0x00002000
NO_AUTO_POSSESS = 0x00004000
NO_DOTSTAR_ANCHOR = 0x00008000
NO_START_OPTIMIZE = 0x00010000
UCP = 0x00020000
UNGREEDY = 0x00040000
UTF = 0x00080000
NEVER_BACKSLASH_C = 0x00100000
ALT_CIRCUMFLEX = 0x00200000
ALT_VERBNAMES = 0x00400000
USE_OFFSET_LIMIT = 0x00800000
EXTENDED_MORE = 0x01000000
LITERAL = 0x02000000

# JIT compilation.
JIT_COMPLETE = 0x00000001
JIT_PARTIAL_SOFT = 0x00000002
JIT_PARTIAL_HARD = 0x00000004
JIT_ALL = JIT_COMPLETE | JIT_PARTIAL_SOFT | JIT_PARTIAL_HARD

# Match-time only.
NOTBOL = 0x00000001
NOTEOL = 0x00000002
NOTEMPTY = 0x00000004
NOTEMPTY_ATSTART = 0x00000008
PARTIAL_SOFT = 0x00000010
PARTIAL_HARD = 0x00000020
NO_JIT = 0x00002000

# ==============================================================================
# STATUS CODES
# ==============================================================================

# Expected outcomes of a match attempt, never reported as errors.
ERROR_NOMATCH = -1
ERROR_PARTIAL = -2

# Matching and substring errors.
ERROR_BADDATA = -29
ERROR_MIXEDTABLES = -30
ERROR_BADMAGIC = -31
ERROR_BADMODE = -32
ERROR_BADOFFSET = -33
ERROR_BADOPTION = -34
ERROR_BADREPLACEMENT = -35
ERROR_BADUTFOFFSET = -36
ERROR_CALLOUT = -37
ERROR_INTERNAL = -44
ERROR_JIT_BADOPTION = -45
ERROR_JIT_STACKLIMIT = -46
ERROR_MATCHLIMIT = -47
ERROR_NOMEMORY = -48
ERROR_NOSUBSTRING = -49
ERROR_NOUNIQUESUBSTRING = -50
ERROR_NULL = -51
ERROR_RECURSELOOP = -52
ERROR_DEPTHLIMIT = -53
ERROR_UNAVAILABLE = -54
ERROR_UNSET = -55
ERROR_HEAPLIMIT = -63

# Compile errors (positive, as reported through the compile error code).
ERROR_END_BACKSLASH = 101
ERROR_UNKNOWN_ESCAPE = 103
ERROR_QUANTIFIER_OUT_OF_ORDER = 104
ERROR_QUANTIFIER_TOO_BIG = 105
ERROR_MISSING_SQUARE_BRACKET = 106
ERROR_CLASS_RANGE_ORDER = 108
ERROR_QUANTIFIER_INVALID = 109
ERROR_INVALID_AFTER_PARENS_QUERY = 111
ERROR_MISSING_CLOSING_PARENTHESIS = 114
ERROR_BAD_SUBPATTERN_REFERENCE = 115
ERROR_NULL_PATTERN = 116
ERROR_BAD_OPTIONS = 117
ERROR_UNMATCHED_CLOSING_PARENTHESIS = 122
ERROR_LOOKBEHIND_NOT_FIXED_LENGTH = 125
ERROR_MISSING_NAME_TERMINATOR = 142
ERROR_DUPLICATE_SUBPATTERN_NAME = 143
ERROR_INVALID_SUBPATTERN_NAME = 144

# ==============================================================================
# PATTERN INFO KINDS
# ==============================================================================

INFO_ALLOPTIONS = 0
INFO_ARGOPTIONS = 1
INFO_CAPTURECOUNT = 4
INFO_JITSIZE = 12
INFO_NAMECOUNT = 17
INFO_NAMETABLE = 19
INFO_SIZE = 22

# Offset vector value for a capture group that did not participate.
UNSET = 0xFFFFFFFFFFFFFFFF

# ==============================================================================
# DIAGNOSTICS
# ==============================================================================

ERROR_MESSAGES: dict[int, str] = {
    ERROR_NOMATCH: "no match",
    ERROR_PARTIAL: "partial match",
    ERROR_BADDATA: "bad data value",
    ERROR_MIXEDTABLES: "patterns do not all use the same character tables",
    ERROR_BADMAGIC: "magic number missing",
    ERROR_BADMODE: "pattern compiled in wrong mode: 8/16/32-bit error",
    ERROR_BADOFFSET: "bad offset value",
    ERROR_BADOPTION: "bad option value",
    ERROR_BADREPLACEMENT: "invalid replacement string",
    ERROR_BADUTFOFFSET: "offset in UTF-8 string not at start of character",
    ERROR_CALLOUT: "callout error code",
    ERROR_INTERNAL: "internal error - pattern overwritten?",
    ERROR_JIT_BADOPTION: "bad JIT option",
    ERROR_JIT_STACKLIMIT: "JIT stack limit reached",
    ERROR_MATCHLIMIT: "match limit exceeded",
    ERROR_NOMEMORY: "no more memory",
    ERROR_NOSUBSTRING: "unknown substring",
    ERROR_NOUNIQUESUBSTRING: "non-unique substring name",
    ERROR_NULL: "NULL argument passed with non-zero length",
    ERROR_RECURSELOOP: "nested recursion at the same subject position",
    ERROR_DEPTHLIMIT: "matching depth limit exceeded",
    ERROR_UNAVAILABLE: "requested value is not available",
    ERROR_UNSET: "requested value is not set",
    ERROR_HEAPLIMIT: "heap limit exceeded",
    ERROR_END_BACKSLASH: "\\ at end of pattern",
    ERROR_UNKNOWN_ESCAPE: "unrecognized character follows \\",
    ERROR_QUANTIFIER_OUT_OF_ORDER: "numbers out of order in {} quantifier",
    ERROR_QUANTIFIER_TOO_BIG: "number too big in {} quantifier",
    ERROR_MISSING_SQUARE_BRACKET: "missing terminating ] for character class",
    ERROR_CLASS_RANGE_ORDER: "range out of order in character class",
    ERROR_QUANTIFIER_INVALID: "quantifier does not follow a repeatable item",
    ERROR_INVALID_AFTER_PARENS_QUERY: "unrecognized character after (? or (?-",
    ERROR_MISSING_CLOSING_PARENTHESIS: "missing closing parenthesis",
    ERROR_BAD_SUBPATTERN_REFERENCE: "reference to non-existent subpattern",
    ERROR_NULL_PATTERN: "pattern passed as NULL",
    ERROR_BAD_OPTIONS: "unrecognised compile-time option bit(s)",
    ERROR_UNMATCHED_CLOSING_PARENTHESIS: "unmatched closing parenthesis",
    ERROR_LOOKBEHIND_NOT_FIXED_LENGTH: "lookbehind assertion is not fixed length",
    ERROR_MISSING_NAME_TERMINATOR: "syntax error in subpattern name (missing terminator?)",
    ERROR_DUPLICATE_SUBPATTERN_NAME: "two named subpatterns have the same name (PCRE2_DUPNAMES not set)",
    ERROR_INVALID_SUBPATTERN_NAME: "subpattern name must start with a non-digit",
}


def error_message(code: int) -> str:
    """Return the diagnostic text for a status or compile error code."""
    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    if code == 0:
        return "no error"
    return f"unknown error code {code}"
