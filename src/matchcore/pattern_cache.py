#!/usr/bin/env python3
"""
Compiled-pattern cache.

Compiling is the expensive half of compile-once/match-many, so call sites
that build the same expressions repeatedly can share one ``CompiledPattern``
through this cache instead of keeping their own module-level globals.

Features:
- Thread-safe LRU cache with automatic eviction
- Compilation outside the lock, double-checked on insert
- Hit/miss/eviction statistics and total compilation time

Eviction only drops the cache's reference. Cached patterns may be held by
callers, so they are released only on ``clear(free=True)``.
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .core.config import get_config
from .core.logging import get_logger
from .engine import PatternEngine, get_default_engine
from .errors import JITError
from .pattern import CompiledPattern, compile

logger = get_logger(__name__)

CacheKey = Tuple[str, int, int, int]


@dataclass
class PatternCacheStats:
    """Statistics for pattern cache performance monitoring."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    compilation_time: float = 0.0
    cache_size: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def miss_ratio(self) -> float:
        total = self.hits + self.misses
        return self.misses / total if total > 0 else 0.0

    @property
    def avg_compilation_time(self) -> float:
        return self.compilation_time / self.misses if self.misses > 0 else 0.0


class PatternCache:
    """LRU cache of compiled patterns keyed by pattern, flags, JIT flags and engine."""

    def __init__(self, max_size: int = 256):
        if max_size <= 0:
            raise ValueError(f"cache size must be positive, got {max_size}")
        self._max_size = max_size
        self._cache: OrderedDict[CacheKey, CompiledPattern] = OrderedDict()
        self._stats = PatternCacheStats()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    @property
    def max_size(self) -> int:
        return self._max_size

    @max_size.setter
    def max_size(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"cache size must be positive, got {value}")
        with self._lock:
            self._max_size = value
            self._evict()

    @staticmethod
    def make_key(pattern: str, flags: int, jit_flags: int, engine: PatternEngine) -> CacheKey:
        return (pattern, flags, jit_flags, id(engine))

    def get(
        self,
        pattern: str,
        flags: int = 0,
        jit_flags: int = 0,
        engine: Optional[PatternEngine] = None,
    ) -> CompiledPattern:
        """
        Return the cached compiled form of ``pattern``, compiling it on a miss.

        A JIT failure is logged and the plain compiled pattern is cached.

        Raises:
            CompileError: If the pattern does not compile (nothing is cached).
        """
        if engine is None:
            engine = get_default_engine()
        key = self.make_key(pattern, flags, jit_flags, engine)

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None and not cached.freed:
                self._stats.hits += 1
                self._cache.move_to_end(key)
                return cached

        # Compile outside of the lock
        start_time = time.perf_counter()
        compiled = compile(pattern, flags, engine=engine)
        if jit_flags:
            try:
                compiled.jit_compile(jit_flags)
            except JITError as e:
                logger.warning(f"Caching {pattern!r} without JIT: {e}")
        compilation_time = time.perf_counter() - start_time

        with self._lock:
            existing = self._cache.get(key)
            if existing is not None and not existing.freed:
                # Another thread added it, use theirs
                self._stats.hits += 1
                self._cache.move_to_end(key)
                compiled.free()
                return existing

            self._cache[key] = compiled
            self._cache.move_to_end(key)
            self._stats.misses += 1
            self._stats.compilation_time += compilation_time
            self._evict()
            self._stats.cache_size = len(self._cache)
            logger.debug(f"Cached pattern {pattern!r} - cache size: {len(self._cache)}")

        return compiled

    def _evict(self) -> None:
        while len(self._cache) > self._max_size:
            key, _ = self._cache.popitem(last=False)
            self._stats.evictions += 1
            logger.debug(f"Evicted pattern {key[0]!r} from cache")
        self._stats.cache_size = len(self._cache)

    def clear(self, free: bool = False) -> None:
        """Empty the cache, optionally releasing every cached pattern."""
        with self._lock:
            patterns = list(self._cache.values())
            self._cache.clear()
            self._stats = PatternCacheStats()
        if free:
            for compiled in patterns:
                compiled.free()
        logger.debug(f"Pattern cache cleared ({len(patterns)} entries, free={free})")

    def get_stats(self) -> PatternCacheStats:
        with self._lock:
            return PatternCacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                compilation_time=self._stats.compilation_time,
                cache_size=len(self._cache),
            )

    def get_info(self) -> Dict[str, Any]:
        """Cache statistics as a plain dictionary."""
        stats = self.get_stats()
        return {
            "cache_size": stats.cache_size,
            "max_size": self._max_size,
            "hits": stats.hits,
            "misses": stats.misses,
            "evictions": stats.evictions,
            "hit_ratio": stats.hit_ratio,
            "avg_compilation_time_ms": stats.avg_compilation_time * 1000,
        }


_global_cache: Optional[PatternCache] = None
_global_cache_lock = threading.Lock()


def _get_global_cache() -> PatternCache:
    global _global_cache
    with _global_cache_lock:
        if _global_cache is None:
            _global_cache = PatternCache(get_config().cache_size)
        return _global_cache


def cached_compile(pattern: str, flags: int = 0, jit_flags: int = 0) -> CompiledPattern:
    """Compile through the process-wide cache. Do not ``free()`` the result."""
    return _get_global_cache().get(pattern, flags, jit_flags)


def get_cache_stats() -> PatternCacheStats:
    return _get_global_cache().get_stats()


def clear_cache(free: bool = False) -> None:
    _get_global_cache().clear(free=free)


def configure_cache(size: int) -> None:
    """Resize the process-wide cache, evicting least recently used entries."""
    _get_global_cache().max_size = size
