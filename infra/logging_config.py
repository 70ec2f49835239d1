"""Centralized logging configuration.

The report supports both human-friendly text logs and structured JSON logs.
``init_observability()`` is the process-wide monitoring hook: the HTTP app and
the CLI call it once at startup and repeated calls are no-ops, so it never
re-installs handlers per request.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from threading import Lock
from typing import Any

from infra.config import LoggingSettings, get_settings

# Context that follows a report request through the system
request_ctx: ContextVar[dict[str, Any] | None] = ContextVar("request_ctx", default=None)


def set_request_context(**kwargs: Any) -> None:
    """Set context values that will be included in all subsequent log entries."""
    current = request_ctx.get()
    if current is None:
        current = {}
    else:
        current = dict(current)
    current.update(kwargs)
    request_ctx.set(current)


def clear_request_context() -> None:
    """Clear the request context (typically at the start of a new request)."""
    request_ctx.set({})


def get_request_context() -> dict[str, Any]:
    """Get a copy of the current request context."""
    ctx = request_ctx.get()
    return dict(ctx) if ctx else {}


def _utc_iso8601() -> str:
    # Example: 2026-01-24T18:03:12.123Z
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    """
    Safe JSON formatter:
      - Always outputs valid JSON (message escaped via json.dumps)
      - Adds `extra={...}` fields and the request context
      - Includes exception info when present
    """

    _STANDARD = {
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
        "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
        "relativeCreated", "thread", "threadName", "processName", "process", "taskName",
        "fields",
    }

    def __init__(self, *, extra_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._extra_fields = dict(extra_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": _utc_iso8601(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        for k, v in record.__dict__.items():
            if k not in self._STANDARD and k not in base:
                base[k] = v

        for k, v in self._extra_fields.items():
            base.setdefault(k, v)

        if record.exc_info:
            base["exception"] = self.formatException(record.exc_info)

        ctx = request_ctx.get()
        if ctx:
            for k, v in ctx.items():
                base.setdefault(k, v)

        return json.dumps(base, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """
    Human-friendly logs, but UTC timestamps.

    Structured fields passed through :class:`StructuredLogger` are appended as
    ``key=value`` pairs so text logs carry the same information as JSON logs.
    """
    converter = time.gmtime  # UTC

    def __init__(self) -> None:
        super().__init__("%(asctime)sZ | %(levelname)s | %(name)s | %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "fields", None)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class StructuredLogger:
    """
    Structured logger with automatic context injection.

    Usage:
        from infra.logging_config import StructuredLogger, set_request_context

        logger = StructuredLogger(__name__)
        set_request_context(path="/", instance_id="i-0abc")
        logger.info("gotify_push_sent", status=200)
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event: str, *, exc_info: Any = False, **kwargs: Any) -> None:
        extra = {
            "event": event,
            "fields": dict(kwargs),
            **kwargs,
        }
        self._logger.log(level, event, extra=extra, exc_info=exc_info)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, event, **kwargs)

    def exception(self, event: str, *, exc: BaseException | None = None, **kwargs: Any) -> None:
        """Log an exception with the current context and traceback.

        Without `exc` the exception being handled is used.
        """
        exc_info: Any = (type(exc), exc, exc.__traceback__) if exc is not None else True
        self._log(logging.ERROR, event, exc_info=exc_info, **kwargs)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    json_logs: bool = False
    override_root_handlers: bool = False
    extra_fields: Mapping[str, Any] | None = None


def setup_logging(
    *,
    level: str | None = None,
    json_logs: bool | None = None,
    override_root_handlers: bool | None = None,
    extra_fields: Mapping[str, Any] | None = None,
) -> None:
    """
    Central logging setup.

    Env vars:
      - TRAFFIC_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default INFO)
      - TRAFFIC_LOG_JSON:  1/0 (default 0)
      - TRAFFIC_LOG_OVERRIDE: 1/0 (default 0)
         If 1, replaces any pre-configured root handlers.
         If 0, only configures logging if root has no handlers.
    """
    settings_error: ValueError | None = None
    try:
        config = get_settings(reload=True).logging
    except ValueError as exc:
        # A bad REPORT_TIMEZONE or AWS_* value must not stop logging from
        # starting; the same error surfaces again when a report is built.
        config = LoggingSettings()
        settings_error = exc

    cfg = LoggingConfig(
        level=(level or config.level).upper(),
        json_logs=json_logs if json_logs is not None else bool(config.json_logs),
        override_root_handlers=override_root_handlers
        if override_root_handlers is not None
        else bool(config.override_root_handlers),
        extra_fields=extra_fields,
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.level, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if cfg.json_logs:
        handler.setFormatter(JsonFormatter(extra_fields=cfg.extra_fields))
    else:
        handler.setFormatter(TextFormatter())

    if cfg.override_root_handlers:
        for h in list(root.handlers):
            root.removeHandler(h)
        root.addHandler(handler)
    elif not root.handlers:
        root.addHandler(handler)

    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if settings_error is not None:
        StructuredLogger(__name__).warning(
            "settings_invalid_using_default_logging",
            error_type=type(settings_error).__name__,
            detail=str(settings_error),
        )


_OBSERVABILITY_LOCK = Lock()
_OBSERVABILITY_READY = False


def init_observability(**kwargs: Any) -> bool:
    """Install logging once per process.

    Returns True when this call performed the initialization, False when it was
    already done.
    """
    global _OBSERVABILITY_READY
    with _OBSERVABILITY_LOCK:
        if _OBSERVABILITY_READY:
            return False
        setup_logging(**kwargs)
        _OBSERVABILITY_READY = True
        return True


def reset_observability() -> None:
    """Forget previous initialization. (Mostly useful for tests.)"""
    global _OBSERVABILITY_READY
    with _OBSERVABILITY_LOCK:
        _OBSERVABILITY_READY = False


_error_logger = StructuredLogger("ec2trafficreport.errors")


def capture_exception(exc: BaseException, **kwargs: Any) -> None:
    """Report an unhandled error with its traceback and the request context."""
    _error_logger.exception(
        "unhandled_exception",
        exc=exc,
        error_type=type(exc).__name__,
        detail=str(exc),
        **kwargs,
    )
