"""Structured logging for the lookup service.

Log lines are JSON objects by default. Lookup code attaches context with
``extra={"ctx_token": ...}``; every ``ctx_*`` attribute is copied under
``context`` in the line with the prefix removed.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Iterable

import orjson

LOG_LEVEL_ENV = "HOVERLOOKUP_LOG_LEVEL"
LOG_FORMAT_ENV = "HOVERLOOKUP_LOG_FORMAT"
CONTEXT_PREFIX = "ctx_"
# Driver loggers that emit per-heartbeat DEBUG records.
NOISY_LOGGERS = ("pymongo", "watchdog")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``ctx_*`` extras gathered under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        context = {
            key[len(CONTEXT_PREFIX) :]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(
    level: str | int | None = None,
    use_json: bool | None = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Install a single stdout handler on the root logger.

    ``level`` and ``use_json`` default to ``HOVERLOOKUP_LOG_LEVEL`` and
    ``HOVERLOOKUP_LOG_FORMAT`` (``json`` or ``text``). Loggers named in
    ``quiet`` are raised to WARNING.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    if use_json is None:
        use_json = os.environ.get(LOG_FORMAT_ENV, "json").lower() != "text"
    logging.captureWarnings(True)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "hover_lookup") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
