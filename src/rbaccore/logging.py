"""Logging utilities for rbaccore.

This module provides:
- Logging configuration from RbacConfig
- Safe, length-bounded previews of entity trees and identifiers
- A formatter that emits plain text or structured JSON
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import LogLevel, RbacConfig

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a single-line, length-bounded preview of a value for logging.

    Entity listings can hold thousands of entries; never log them whole.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


class RbacFormatter(logging.Formatter):
    """Formatter that folds ``extra`` fields into the output.

    Error logs from the decoration layer carry ``error_code`` and
    ``error_details`` as extras; this keeps them visible in both formats.
    """

    def __init__(self, json_format: bool = False, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: safe_preview(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }

        if self.json_format:
            log_data.update(extras)
            if record.exc_info:
                log_data["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            log_data["level"],
            log_data["logger"],
            f": {log_data['message']}",
        ]
        parts.extend(f"{key}={value}" for key, value in extras.items())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(config: Optional[RbacConfig] = None, json_format: Optional[bool] = None) -> None:
    """Configure root logging for a process embedding rbaccore.

    Args:
        config: RbacConfig instance (if None, loads from environment)
        json_format: Overrides ``config.log_json`` when given
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(LogLevel(config.log_level), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Avoid duplicate output on repeated setup
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        RbacFormatter(json_format=config.log_json if json_format is None else json_format)
    )
    root_logger.addHandler(console_handler)


__all__ = [
    "RbacFormatter",
    "safe_preview",
    "setup_logging",
]
