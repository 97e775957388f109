#!/usr/bin/env python3
"""
Structured logging for matchcore.

Library modules call ``get_logger(__name__)`` once at import time. The first
call for a name attaches handlers according to the environment and the
loaded configuration:

- level from MATCHCORE_LOG_LEVEL / LOG_LEVEL, then ``logging.level``
- output from LOG_OUTPUT, then ``logging.output`` (console, file, both, none)
- JSON lines when ``logging.json`` says so or the environment is production

Records pick up the ambient context set with ``set_context`` or
``LogContext`` (pattern, operation, ...), so a replace loop can tag every
record it emits without threading the values through each call.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, List, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar('matchcore_log_context', default={})

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {
    'message', 'context', 'taskName',
}

_PRODUCTION_VARS = ('ENVIRONMENT', 'ENV', 'MATCHCORE_ENV')

_LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
_LOG_FILE_BACKUPS = 3


class StructuredFormatter(logging.Formatter):
    """Renders records as JSON lines or as ``time | LEVEL | logger | message | k=v``."""

    def __init__(self, use_json: bool = False):
        super().__init__()
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        context = dict(_log_context.get({}))
        context.update(getattr(record, 'context', None) or {})
        if self.use_json:
            return self._as_json(record, context)
        return self._as_text(record, context)

    def _as_json(self, record: logging.LogRecord, context: Dict[str, Any]) -> str:
        entry: Dict[str, Any] = {
            'timestamp': self.formatTime(record, datefmt='%Y-%m-%dT%H:%M:%S'),
            'level': record.levelname,
            'module': record.name,
            'message': record.getMessage(),
        }
        if context:
            entry['context'] = context
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES
        )
        return json.dumps(entry, default=str)

    def _as_text(self, record: logging.LogRecord, context: Dict[str, Any]) -> str:
        timestamp = self.formatTime(record, datefmt='%Y-%m-%d %H:%M:%S')
        line = f"{timestamp} | {record.levelname:5} | {record.name} | {record.getMessage()}"
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that attaches the ambient context to each record.

    Precedence, lowest first: ``set_context`` values, the adapter's own
    ``extra``, then ``extra={'context': {...}}`` passed to the call.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        extra = kwargs.setdefault('extra', {})
        extra['context'] = {
            **_log_context.get({}),
            **(self.extra or {}),
            **extra.pop('context', {}),
        }
        return msg, kwargs


def get_log_level() -> str:
    level = os.environ.get('MATCHCORE_LOG_LEVEL') or os.environ.get('LOG_LEVEL')
    if level:
        return level.upper()
    from .config import get_config
    return get_config().log_level


def get_log_output() -> str:
    output = os.environ.get('LOG_OUTPUT')
    if output:
        return output.lower()
    from .config import get_config
    return get_config().log_output


def is_production_env() -> bool:
    return any(os.environ.get(var) == 'production' for var in _PRODUCTION_VARS)


def use_json_output() -> bool:
    """An explicit ``logging.json`` setting wins over environment detection."""
    from .config import get_config
    configured = get_config().log_json
    return is_production_env() if configured is None else configured


def _console_handlers() -> List[logging.Handler]:
    # Below WARNING goes to stdout, the rest to stderr
    quiet = logging.StreamHandler(sys.stdout)
    quiet.setLevel(logging.DEBUG)
    quiet.addFilter(lambda record: record.levelno < logging.WARNING)

    loud = logging.StreamHandler(sys.stderr)
    loud.setLevel(logging.WARNING)
    return [quiet, loud]


def _file_handler(name: str) -> logging.Handler:
    logs_dir = Path(os.environ.get('MATCHCORE_LOG_DIR', Path.cwd() / 'logs'))
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        logs_dir / f"{name.rsplit('.', 1)[-1]}.log",
        maxBytes=_LOG_FILE_MAX_BYTES,
        backupCount=_LOG_FILE_BACKUPS,
    )


def _build_handlers(output: str, name: str) -> List[logging.Handler]:
    if output == 'none':
        return [logging.NullHandler()]
    handlers: List[logging.Handler] = []
    if output in ('console', 'both'):
        handlers.extend(_console_handlers())
    if output in ('file', 'both'):
        handlers.append(_file_handler(name))
    return handlers


def setup_structured_logging(
    name: str,
    log_level: Optional[str] = None,
    log_output: Optional[str] = None,
    force_json: Optional[bool] = None,
) -> ContextLogger:
    """
    Attach matchcore handlers to the logger called ``name``.

    Args:
        name: Logger name (typically __name__)
        log_level: Level override (DEBUG, INFO, WARNING, ERROR)
        log_output: Output override (console, file, both, none)
        force_json: JSON on or off regardless of configuration

    Returns:
        ContextLogger wrapping the configured logger. A logger that already
        has handlers is wrapped as is.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return ContextLogger(logger)

    level = log_level or get_log_level()
    use_json = use_json_output() if force_json is None else force_json
    formatter = StructuredFormatter(use_json=use_json)

    logger.setLevel(getattr(logging, level, logging.INFO))
    for handler in _build_handlers(log_output or get_log_output(), name):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False

    return ContextLogger(logger)


def set_context(**kwargs: Any) -> None:
    """Add key-value pairs (e.g. pattern="a(b)") to the current context."""
    _log_context.set({**_log_context.get({}), **kwargs})


def clear_context() -> None:
    _log_context.set({})


def get_context() -> Dict[str, Any]:
    return dict(_log_context.get({}))


class LogContext:
    """
    Context manager that layers values over the current context and
    restores the previous context on exit.

    Usage:
        with LogContext(operation="replace_all", pattern=r"(\\d+)"):
            logger.debug("Replacing")
    """

    def __init__(self, **kwargs: Any):
        self.new_context = kwargs
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get({}), **self.new_context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)


def get_logger(name: str) -> ContextLogger:
    """Logger for a matchcore module, configured on first use."""
    return setup_structured_logging(name)
