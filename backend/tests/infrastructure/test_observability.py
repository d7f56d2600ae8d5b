"""Structured logging — JSON formatter surfaces whitelisted canvas extras.

Tests cover:
    - Core fields always present
    - Canvas extras (cell, ordering_key, counts) surfaced, unknown extras dropped
    - Decimal ordering keys kept exact as strings
    - setup_logging replaces its own handler instead of stacking, quiets httpx
"""

import json
import logging
from decimal import Decimal

import pytest

from pixel_canvas.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord("pixel_canvas.test", logging.INFO, __file__, 1, "hello", None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


@pytest.fixture
def restore_root_logging():
    handlers, level = list(logging.root.handlers), logging.root.level
    yield
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


def test_json_formatter_includes_core_fields():
    out = json.loads(JSONFormatter().format(_record()))
    assert out["level"] == "INFO"
    assert out["logger"] == "pixel_canvas.test"
    assert out["message"] == "hello"


def test_json_formatter_includes_canvas_extras():
    out = json.loads(JSONFormatter().format(_record(cell="3,4", pixel_count=2, unrelated="x")))
    assert out["cell"] == "3,4"
    assert out["pixel_count"] == 2
    assert "unrelated" not in out


def test_json_formatter_serializes_cell_and_ordering_key():
    record = _record(cell="3,4", ordering_key=Decimal("1700000000.000000001"))
    out = json.loads(JSONFormatter().format(record))
    assert out["cell"] == "3,4"
    assert out["ordering_key"] == "1700000000.000000001"


def test_setup_logging_does_not_stack_handlers(restore_root_logging):
    first = setup_logging("DEBUG", "json")
    second = setup_logging("INFO", "text")
    assert first not in logging.root.handlers
    assert second in logging.root.handlers
    assert logging.root.level == logging.INFO
    assert not isinstance(second.formatter, JSONFormatter)


def test_setup_logging_quiets_http_client_loggers(restore_root_logging):
    setup_logging("DEBUG", "json")
    assert logging.getLogger("httpx").level == logging.WARNING
