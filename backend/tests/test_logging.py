"""Tests for structured logging."""

from __future__ import annotations

import logging

import orjson

from vector_lite.core.logging import JsonFormatter, PlainFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("vector_lite.queue", logging.WARNING, __file__, 10, "Entry %s failed", (7,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_collects_context() -> None:
    payload = orjson.loads(JsonFormatter().format(_record(ctx_entry_id=7, ctx_chunk_id=3, other="x")))
    assert payload["level"] == "warning"
    assert payload["logger"] == "vector_lite.queue"
    assert payload["message"] == "Entry 7 failed"
    assert payload["context"] == {"entry_id": 7, "chunk_id": 3}


def test_json_formatter_without_context() -> None:
    payload = orjson.loads(JsonFormatter().format(_record()))
    assert "context" not in payload


def test_plain_formatter_appends_pairs() -> None:
    line = PlainFormatter().format(_record(ctx_entry_id=7))
    assert "Entry 7 failed" in line
    assert line.endswith("entry_id=7")
