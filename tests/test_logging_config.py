"""Tests for structured logging and the monitoring hook."""

from __future__ import annotations

import json
import logging
from typing import Any

import infra.logging_config as logging_config
from infra.logging_config import (
    JsonFormatter,
    StructuredLogger,
    TextFormatter,
    capture_exception,
    clear_request_context,
    get_request_context,
    init_observability,
    reset_observability,
    set_request_context,
)


def _record(logger_name: str, caplog: Any) -> logging.LogRecord:
    records = [r for r in caplog.records if r.name == logger_name]
    assert records
    return records[-1]


def test_structured_logger_attaches_fields(caplog: Any) -> None:
    caplog.set_level(logging.INFO)
    StructuredLogger("tests.structured").info("push_started", channel="gotify")

    record = _record("tests.structured", caplog)
    assert record.getMessage() == "push_started"
    assert record.event == "push_started"  # type: ignore[attr-defined]
    assert record.channel == "gotify"  # type: ignore[attr-defined]


def test_json_formatter_merges_request_context(caplog: Any) -> None:
    caplog.set_level(logging.INFO)
    clear_request_context()
    set_request_context(request_path="/", instance_id="i-0abc")
    try:
        StructuredLogger("tests.json").info("report_built", days=3)
        line = JsonFormatter(extra_fields={"app": "ec2trafficreport"}).format(
            _record("tests.json", caplog)
        )
    finally:
        clear_request_context()

    payload = json.loads(line)
    assert payload["message"] == "report_built"
    assert payload["days"] == 3
    assert payload["request_path"] == "/"
    assert payload["instance_id"] == "i-0abc"
    assert payload["app"] == "ec2trafficreport"
    assert "fields" not in payload
    assert get_request_context() == {}


def test_text_formatter_appends_fields(caplog: Any) -> None:
    caplog.set_level(logging.INFO)
    StructuredLogger("tests.text").warning("push_failed", channel="telegram", status=401)

    line = TextFormatter().format(_record("tests.text", caplog))
    assert "| WARNING | tests.text | push_failed | channel=telegram status=401" in line


def test_capture_exception_logs_traceback(caplog: Any) -> None:
    caplog.set_level(logging.ERROR)
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        capture_exception(exc, command="report")

    record = _record("ec2trafficreport.errors", caplog)
    assert record.exc_info is not None
    assert record.error_type == "RuntimeError"  # type: ignore[attr-defined]
    assert record.detail == "boom"  # type: ignore[attr-defined]
    assert record.command == "report"  # type: ignore[attr-defined]


def test_init_observability_is_idempotent(monkeypatch: Any) -> None:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(logging_config, "setup_logging", lambda **kw: calls.append(kw))
    was_ready = logging_config._OBSERVABILITY_READY
    reset_observability()
    try:
        assert init_observability() is True
        assert init_observability() is False
        assert len(calls) == 1
    finally:
        logging_config._OBSERVABILITY_READY = was_ready


def test_setup_logging_survives_invalid_settings(monkeypatch: Any, tmp_path: Any, caplog: Any) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPORT_TIMEZONE", "Mars/Olympus")
    caplog.set_level(logging.INFO)

    logging_config.setup_logging(override_root_handlers=False)

    record = _record("infra.logging_config", caplog)
    assert record.getMessage() == "settings_invalid_using_default_logging"
    assert record.error_type == "ValidationError"  # type: ignore[attr-defined]
    assert "Mars/Olympus" in record.detail  # type: ignore[attr-defined]
