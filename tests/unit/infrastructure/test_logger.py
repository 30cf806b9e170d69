# tests/unit/infrastructure/test_logger.py
from __future__ import annotations

import contextvars
import json
import logging
import sys
from decimal import Decimal
from typing import Any

import pytest

from turbodash_kpi.infrastructure.logging.logger import (
    _JsonFormatter,
    configure_root_logging,
    get_json_logger,
    get_request_id,
    set_request_context,
)


def _render(msg: str, *, exc_info: Any = None, **extra: Any) -> dict[str, Any]:
    logger = logging.getLogger("test.kpi")
    record = logger.makeRecord(
        name=logger.name,
        level=logging.INFO,
        fn="test_logger",
        lno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
        extra=extra or None,
    )
    return json.loads(_JsonFormatter().format(record))


def test_stable_keys() -> None:
    payload = _render("kpi.recompute.start")

    assert payload["message"] == "kpi.recompute.start"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.kpi"
    assert "ts" in payload
    assert "request_id" not in payload


def test_extra_fields_are_merged() -> None:
    payload = _render("kpi.recompute.done", year=2026, outcome="partial", errors=3)

    assert payload["year"] == 2026
    assert payload["outcome"] == "partial"
    assert payload["errors"] == 3
    assert "lineno" not in payload


def test_nested_extra_is_flattened() -> None:
    payload = _render("kpi.override.upserted", extra={"metric_key": "mrr_active"})

    assert payload["metric_key"] == "mrr_active"


def test_non_json_values_are_stringified() -> None:
    payload = _render("kpi.value", value=Decimal("1.50"))

    assert payload["value"] == "1.50"


def test_request_id_comes_from_context() -> None:
    def _inside() -> dict[str, Any]:
        set_request_context(request_id="req-42")
        assert get_request_id() == "req-42"
        return _render("inside")

    payload = contextvars.copy_context().run(_inside)

    assert payload["request_id"] == "req-42"
    assert "request_id" not in _render("outside")


def test_exception_info_is_included() -> None:
    try:
        raise ValueError("bad year")
    except ValueError:
        payload = _render("failed", exc_info=sys.exc_info())

    assert payload["exc_type"] == "ValueError"
    assert payload["exc_message"] == "bad year"


def test_configure_root_logging_is_idempotent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    root.handlers.clear()
    try:
        configure_root_logging()
        configure_root_logging("warning")

        assert root.level == logging.WARNING
        json_handlers = [h for h in root.handlers if isinstance(h.formatter, _JsonFormatter)]
        assert len(json_handlers) == 1
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_get_json_logger_propagates() -> None:
    logger = get_json_logger("turbodash_kpi.test")

    assert logger.name == "turbodash_kpi.test"
    assert logger.propagate is True
