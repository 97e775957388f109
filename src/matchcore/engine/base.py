from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Optional

from ..scratch import MatchScratch


class CompileResult(NamedTuple):
    """Outcome of ``PatternEngine.compile``.

    On success ``handle`` is set and the error fields are unused. On failure
    ``handle`` is None, ``error_offset`` is the byte position in the pattern
    and ``error_message`` may carry engine-specific text (otherwise the
    message is looked up from ``error_code``).
    """

    handle: Any
    error_code: Optional[int] = None
    error_offset: int = 0
    error_message: Optional[str] = None


class PatternEngine(ABC):
    """Abstract base class for pattern engines.

    The core only ever talks to an engine through these methods. Option words
    are passed through unmodified; their meaning belongs to the engine.
    """

    name: str = "abstract"

    @abstractmethod
    def compile(self, pattern: bytes, flags: int) -> CompileResult:
        """Compile ``pattern``."""
        pass

    @abstractmethod
    def jit(self, handle: Any, flags: int) -> int:
        """Add an accelerated form to ``handle``. Returns 0 or a negative error code."""
        pass

    @abstractmethod
    def pattern_info(self, handle: Any, kind: int) -> Any:
        """Return static information about a compiled pattern.

        Raises:
            ValueError: If ``kind`` is not supported by the engine.
        """
        pass

    @abstractmethod
    def execute(
        self,
        handle: Any,
        subject: bytes,
        start_offset: int,
        flags: int,
        scratch: MatchScratch,
    ) -> int:
        """
        Run one match attempt and write capture offsets into ``scratch``.

        Returns:
            A positive count on success, ERROR_NOMATCH, ERROR_PARTIAL, or
            another negative error code.
        """
        pass

    @abstractmethod
    def error_message(self, code: int) -> str:
        pass

    @abstractmethod
    def substring_number_from_name(self, handle: Any, name: str) -> int:
        """Group index for ``name``, or a negative error code."""
        pass

    @abstractmethod
    def free(self, handle: Any) -> None:
        """Release ``handle``. Called exactly once per successful compile."""
        pass
