#!/usr/bin/env python3
"""
Tests for compiled patterns and the compile entry points.

Covers:
- Group count and name table derived at compile time
- Compile errors, including the NUL check that runs before the engine
- JIT compilation and its failure mode
- Release semantics (idempotent, thread safe, fail fast afterwards)
"""

import threading

import pytest

from matchcore import (
    CompiledPattern,
    CompileError,
    GroupNameError,
    InvalidPatternError,
    JITError,
    ProgrammerError,
    UseAfterFreeError,
    compile,
    compile_jit,
    must_compile,
    must_compile_jit,
)
from matchcore.constants import (
    CASELESS,
    DUPNAMES,
    ERROR_BAD_OPTIONS,
    ERROR_JIT_BADOPTION,
    ERROR_NOSUBSTRING,
    ERROR_NOUNIQUESUBSTRING,
    INFO_CAPTURECOUNT,
    JIT_COMPLETE,
    UNGREEDY,
    error_message,
)
from matchcore.engine import RegexEngine


class CountingEngine(RegexEngine):
    """RegexEngine that counts how often handles are freed."""

    def __init__(self):
        super().__init__()
        self.frees = 0

    def free(self, handle):
        self.frees += 1
        super().free(handle)


class TestCompile:
    """Successful compilation and derived metadata."""

    def test_group_count_and_names(self):
        pattern = compile(r"(?P<year>\d{4})-(\d{2})(?P<day>-\d{2})?")
        assert pattern.groups == 3
        assert dict(pattern.name_table) == {"year": 1, "day": 3}
        assert pattern.info(INFO_CAPTURECOUNT) == 3

    def test_no_groups(self):
        assert compile("abc").groups == 0

    def test_compile_is_deterministic(self):
        first = compile(r"(?P<a>x)(y)|(?P<b>z)", CASELESS)
        second = compile(r"(?P<a>x)(y)|(?P<b>z)", CASELESS)
        assert first.groups == second.groups
        assert dict(first.name_table) == dict(second.name_table)

    def test_name_table_is_read_only(self):
        pattern = compile(r"(?P<x>a)")
        with pytest.raises(TypeError):
            pattern.name_table["y"] = 2

    def test_keeps_source_and_flags(self):
        pattern = compile("abc", CASELESS)
        assert pattern.pattern == "abc"
        assert pattern.flags == CASELESS
        assert isinstance(pattern, CompiledPattern)
        assert "abc" in repr(pattern)

    def test_explicit_engine(self, engine):
        assert compile("a", engine=engine).engine is engine

    def test_name_to_index(self):
        pattern = compile(r"(a)(?P<word>\w+)")
        assert pattern.name_to_index("word") == 2

    def test_unknown_name(self):
        pattern = compile(r"(?P<word>\w+)")
        with pytest.raises(GroupNameError) as exc_info:
            pattern.name_to_index("missing")
        assert exc_info.value.code == ERROR_NOSUBSTRING
        assert isinstance(exc_info.value, LookupError)

    def test_shared_name_needs_an_index(self):
        pattern = compile(r"(?P<n>a)|(?P<n>b)", DUPNAMES)
        assert pattern.groups == 1
        with pytest.raises(GroupNameError, match="not unique") as exc_info:
            pattern.name_to_index("n")
        assert exc_info.value.code == ERROR_NOUNIQUESUBSTRING
        assert pattern.matcher(b"b").group(1) == b"b"


class TestCompileErrors:
    """Failures are structured values with byte offsets."""

    def test_unclosed_group(self):
        with pytest.raises(CompileError) as exc_info:
            compile("a(")
        error = exc_info.value
        assert error.pattern == "a("
        assert error.offset in (1, 2)
        assert str(error).startswith(f"compilation failed at offset {error.offset}: ")

    def test_nul_byte(self):
        with pytest.raises(CompileError) as exc_info:
            compile("ab\x00c")
        assert exc_info.value.offset == 2
        assert exc_info.value.message == "NUL byte in pattern"

    def test_nul_offset_is_in_bytes(self):
        with pytest.raises(CompileError) as exc_info:
            compile("é\x00")
        assert exc_info.value.offset == 2

    def test_nul_checked_before_engine(self, monkeypatch, engine):
        monkeypatch.setattr(engine, "compile", lambda *args: pytest.fail("engine was called"))
        with pytest.raises(CompileError):
            compile("a\x00", engine=engine)

    def test_engine_error_code_message(self):
        with pytest.raises(CompileError) as exc_info:
            compile("a", UNGREEDY)
        assert exc_info.value.code == ERROR_BAD_OPTIONS
        assert exc_info.value.message == error_message(ERROR_BAD_OPTIONS)
        assert exc_info.value.offset == 0

    def test_must_compile(self):
        assert must_compile("a+").groups == 0
        with pytest.raises(ProgrammerError) as exc_info:
            must_compile("a(")
        assert isinstance(exc_info.value.__cause__, CompileError)


class TestJitCompile:
    """The acceleration step and its failures."""

    def test_jit_compile(self):
        pattern = compile("a+")
        assert not pattern.jit_compiled
        pattern.jit_compile()
        pattern.jit_compile()
        assert pattern.jit_compiled

    def test_jit_failure_keeps_pattern_usable(self):
        pattern = compile(r"\d+")
        with pytest.raises(JITError) as exc_info:
            pattern.jit_compile(0)
        error = exc_info.value
        assert error.code == ERROR_JIT_BADOPTION
        assert error.pattern is pattern
        assert str(error) == f"JIT compilation failed: {error_message(ERROR_JIT_BADOPTION)}"
        assert not pattern.jit_compiled
        assert pattern.find_index(b"ab12") == (2, 4)

    def test_compile_jit(self):
        pattern = compile_jit(r"(\w+)", 0, JIT_COMPLETE)
        assert pattern.jit_compiled
        assert pattern.find_index_string("  hi") == (2, 4)

    def test_compile_jit_failure_carries_pattern(self):
        with pytest.raises(JITError) as exc_info:
            compile_jit("a", 0, 0x8)
        assert not exc_info.value.pattern.freed

    def test_must_compile_jit_frees_on_failure(self):
        with pytest.raises(ProgrammerError) as exc_info:
            must_compile_jit("a", 0, 0x8)
        cause = exc_info.value.__cause__
        assert isinstance(cause, JITError)
        assert cause.pattern.freed

    def test_must_compile_jit_bad_pattern(self):
        with pytest.raises(ProgrammerError) as exc_info:
            must_compile_jit("(")
        assert isinstance(exc_info.value.__cause__, CompileError)


class TestRelease:
    """Release is exactly-once and later use fails fast."""

    def test_free_is_idempotent(self):
        engine = CountingEngine()
        pattern = compile("a", engine=engine)
        pattern.free()
        pattern.free()
        assert pattern.freed
        assert engine.frees == 1
        assert "freed" in repr(pattern)

    def test_context_manager_frees(self):
        engine = CountingEngine()
        with compile("a", engine=engine) as pattern:
            assert pattern.find_index(b"xa") == (1, 2)
        assert pattern.freed
        assert engine.frees == 1

    def test_concurrent_free_releases_once(self):
        engine = CountingEngine()
        pattern = compile("a", engine=engine)
        threads = [threading.Thread(target=pattern.free) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert engine.frees == 1

    @pytest.mark.parametrize(
        "use",
        [
            lambda p: p.handle,
            lambda p: p.groups,
            lambda p: p.name_table,
            lambda p: p.info(INFO_CAPTURECOUNT),
            lambda p: p.jit_compile(),
            lambda p: p.name_to_index("x"),
        ],
    )
    def test_use_after_free(self, use):
        pattern = compile("(?P<x>a)")
        pattern.free()
        with pytest.raises(UseAfterFreeError):
            use(pattern)

    def test_new_matcher_after_free(self):
        pattern = compile("a")
        pattern.free()
        with pytest.raises(InvalidPatternError):
            pattern.new_matcher()
