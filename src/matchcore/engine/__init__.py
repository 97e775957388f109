"""
Pattern engine package.
"""
from __future__ import annotations

import functools
from typing import Type

from ..core.config import get_config
from ..core.logging import get_logger
from .base import CompileResult, PatternEngine
from .regex_engine import RegexEngine

logger = get_logger(__name__)

__all__ = [
    "CompileResult",
    "PatternEngine",
    "RegexEngine",
    "get_default_engine",
    "get_engine_class",
    "reset_default_engine",
]


def get_engine_class(engine_name: str) -> Type[PatternEngine]:
    """
    Factory function to get the engine class based on name.

    Args:
        engine_name: 'regex'

    Returns:
        The engine class.

    Raises:
        ValueError: If the engine is unknown.
    """
    if engine_name == "regex":
        return RegexEngine

    raise ValueError(f"Unknown pattern engine: {engine_name}")


@functools.lru_cache(maxsize=1)
def get_default_engine() -> PatternEngine:
    """The configured engine, created once per process."""
    config = get_config()
    engine_class = get_engine_class(config.engine_name)
    engine = engine_class(match_timeout=config.match_timeout)
    logger.debug(f"Initialized {config.engine_name} pattern engine (match_timeout={config.match_timeout})")
    return engine


def reset_default_engine() -> None:
    """Forget the default engine so the next lookup re-reads configuration."""
    get_default_engine.cache_clear()
