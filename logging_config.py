from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "sensor_path",
    "sensor_id",
    "reason",
    "sensor_count",
    "failure_count",
    "duplicate_count",
    "output_path",
    "interval_s",
    "strategy",
    "elapsed_ms",
)

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append ``key=value`` pairs for known ``extra`` fields to each line."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts: list[str] = []
        for key in self._extra_keys:
            value = getattr(record, key, None)
            if value is None:
                continue
            context_parts.append(f"{key}={value}")
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def configure_logging(level: str | int | None = None, log_file: str | None = None) -> None:
    """Configure process-wide logging once; later calls are no-ops.

    Records go to stderr, or to ``log_file`` when the process runs detached
    and has no terminal to write to.
    """
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

    handler: dict[str, object] = {
        "class": "logging.StreamHandler",
        "level": log_level,
        "formatter": "contextual",
    }
    if log_file:
        handler = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "level": log_level,
            "formatter": "contextual",
        }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {"default": handler},
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
