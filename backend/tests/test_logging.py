"""Tests for structured logging."""

from __future__ import annotations

import logging

import orjson

from hover_lookup.core.logging import JsonFormatter, configure_logging


def test_json_line_carries_context() -> None:
    record = logging.LogRecord("hover_lookup.lookup", logging.WARNING, __file__, 1, "Skipping %s", ("a.json",), None)
    record.ctx_path = "/tmp/a.json"
    record.ctx_invalid = ["a.json"]

    line = orjson.loads(JsonFormatter().format(record))

    assert line["level"] == "warning"
    assert line["logger"] == "hover_lookup.lookup"
    assert line["msg"] == "Skipping a.json"
    assert line["context"] == {"path": "/tmp/a.json", "invalid": ["a.json"]}


def test_configure_quiets_driver_loggers(monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    monkeypatch.setattr(root, "level", root.level)
    monkeypatch.setenv("HOVERLOOKUP_LOG_FORMAT", "text")

    configure_logging(level="DEBUG", quiet=("hover_lookup.test.noisy",))

    assert root.level == logging.DEBUG
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("hover_lookup.test.noisy").level == logging.WARNING
