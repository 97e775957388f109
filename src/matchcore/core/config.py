#!/usr/bin/env python3
"""Configuration loader that reads from matchcore.json / matchcore.jsonc"""
from __future__ import annotations

import copy
import json
import os
import re
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "engine": {"name": "regex", "match_timeout": None},
    "cache": {"size": 256},
    "logging": {"level": "INFO", "output": "console", "json": None},
}

_CONFIG_FILENAMES = ("matchcore.jsonc", "matchcore.json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_OUTPUTS = ("console", "file", "both", "none")


class ConfigurationError(Exception):
    """Raised when there's a configuration issue that prevents safe operation."""
    pass


class ConfigLoader:
    """Load configuration from a JSON(C) file, falling back to built-in defaults"""

    def __init__(self, config_path: str | Path | None = None) -> None:
        if config_path is None:
            config_path = self._find_config_file()

        self.config_file = str(config_path) if config_path is not None else None
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if config_path is not None:
            self._merge(self._config, self._read(Path(config_path)))

    @staticmethod
    def _find_config_file() -> Path | None:
        """Find config file: MATCHCORE_CONFIG, then the current working directory"""
        env_path = os.environ.get("MATCHCORE_CONFIG")
        if env_path:
            return Path(env_path)

        for filename in _CONFIG_FILENAMES:
            config_path = Path.cwd() / filename
            if config_path.exists():
                return config_path

        return None

    @staticmethod
    def _read(config_path: Path) -> dict[str, Any]:
        try:
            with open(config_path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

        # Remove single-line comments (// ...) for JSONC support
        content = re.sub(r"^\s*//.*$", "", content, flags=re.MULTILINE)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a JSON object")
        return data

    @classmethod
    def _merge(cls, base: dict[str, Any], override: dict[str, Any]) -> None:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._merge(base[key], value)
            else:
                base[key] = value

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a value using dot notation (e.g., 'engine.match_timeout')"""
        value = self._config

        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set a value using dot notation (e.g., 'cache.size')"""
        keys = key_path.split(".")
        target = self._config

        # Navigate to the parent of the target key
        for key in keys[:-1]:
            if key not in target:
                target[key] = {}
            target = target[key]

        target[keys[-1]] = value

    def __getitem__(self, key: str) -> Any:
        return self._config[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._config[key] = value

    @property
    def engine_name(self) -> str:
        return str(self.get("engine.name", "regex"))

    @property
    def match_timeout(self) -> float | None:
        """Per-match timeout in seconds, or None for no limit."""
        env_timeout = os.environ.get("MATCHCORE_MATCH_TIMEOUT")
        value = env_timeout if env_timeout else self.get("engine.match_timeout")
        if value is None:
            return None
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"engine.match_timeout must be a number, got {value!r}") from e
        if timeout <= 0:
            raise ConfigurationError(f"engine.match_timeout must be positive, got {timeout}")
        return timeout

    @property
    def cache_size(self) -> int:
        env_size = os.environ.get("MATCHCORE_CACHE_SIZE")
        value = env_size if env_size else self.get("cache.size", 256)
        try:
            size = int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"cache.size must be an integer, got {value!r}") from e
        if size <= 0:
            raise ConfigurationError(f"cache.size must be positive, got {size}")
        return size

    @property
    def log_level(self) -> str:
        level = str(self.get("logging.level", "INFO")).upper()
        if level not in _LOG_LEVELS:
            raise ConfigurationError(f"logging.level must be one of {', '.join(_LOG_LEVELS)}, got {level!r}")
        return level

    @property
    def log_output(self) -> str:
        output = str(self.get("logging.output", "console")).lower()
        if output not in _LOG_OUTPUTS:
            raise ConfigurationError(f"logging.output must be one of {', '.join(_LOG_OUTPUTS)}, got {output!r}")
        return output

    @property
    def log_json(self) -> bool | None:
        value = self.get("logging.json")
        return None if value is None else bool(value)


_config_loader: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Get the global config loader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(config_path: str | Path | None = None) -> ConfigLoader:
    """Load (or reload) the global configuration, replacing the current instance"""
    global _config_loader
    _config_loader = ConfigLoader(config_path)
    return _config_loader
