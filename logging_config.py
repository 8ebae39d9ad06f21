from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

# Stream context first, then the counts a poll produces.
_DEFAULT_EXTRA_KEYS = (
    "strategy",
    "reason",
    "index",
    "marker",
    "reading_count",
    "bucket_count",
    "error_count",
    "dropped_count",
)

_configured = False


def _render_value(value: Any) -> str:
    """Render one context value for a ``key=value`` pair.

    Encoded datetimes print in full instead of in exponent form, and text
    containing spaces is quoted so pairs stay splittable on whitespace.
    """
    if isinstance(value, float):
        return f"{value:.15g}"
    text = str(value)
    if any(char.isspace() for char in text):
        return f'"{text}"'
    return text


class ContextualFormatter(logging.Formatter):
    """Append whitelisted ``extra=`` fields to each message.

    Timestamps are rendered in UTC to match the ``Z`` suffix in the format.
    """

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
            if value is not None:
                context_parts.append(f"{key}={_render_value(value)}")
        if not context_parts:
            return message
        return f"{message} | {' '.join(context_parts)}"


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

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
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
