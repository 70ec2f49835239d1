"""flask_app.py

HTTP entry point for the EC2 traffic report.

Every request renders the current month's NetworkIn/NetworkOut table for the
configured instance and returns it as Markdown text, whatever the method.
Requests to ``/`` also push the plain-text table to the configured channels
(Gotify, Telegram).

Configuration errors do not stop the app from starting: logging falls back to
its defaults and each request answers ``500 错误: …`` until the env is fixed.

Env
---
- AWS_REGION, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, EC2_INSTANCE_ID
- PUSH_CHANNEL, GOTIFY_URL, GOTIFY_TOKEN, TG_BOT_TOKEN, TG_CHAT_ID

Run
---
FLASK_APP=apps/flask_api/flask_app.py flask run --host=0.0.0.0 --port=8080
"""

from __future__ import annotations

import time
from typing import Any

from flask import Flask, Response, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed

from apps.flask_api.blueprints import report_bp
from apps.flask_api.blueprints.report import traffic_report
from apps.flask_api.utils import _text_error
from infra.config import get_settings
from infra.logging_config import (
    StructuredLogger,
    capture_exception,
    clear_request_context,
    init_observability,
    set_request_context,
)

init_observability()

logger = StructuredLogger(__name__)

app = Flask(__name__)
app.register_blueprint(report_bp)


@app.before_request
def _start_request() -> None:
    clear_request_context()
    set_request_context(method=request.method, request_path=request.path)
    request.environ["_report_t0"] = time.monotonic()


@app.after_request
def _log_request(resp: Response) -> Response:
    t0 = float(request.environ.get("_report_t0") or 0.0)
    ms = int(max(0.0, (time.monotonic() - t0) * 1000.0)) if t0 else None
    logger.info(
        "http_request",
        status=int(getattr(resp, "status_code", 0) or 0),
        ms=ms,
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        ua=request.headers.get("User-Agent", ""),
    )
    return resp


@app.errorhandler(MethodNotAllowed)
def _report_for_unlisted_method(_exc: MethodNotAllowed) -> Any:
    # PROPFIND, TRACE and other verbs the route does not list.
    try:
        return traffic_report(path=request.path.lstrip("/"))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        capture_exception(exc)
        return _text_error(exc, status=500)


@app.errorhandler(Exception)
def _err_unhandled(exc: Exception) -> Any:
    if isinstance(exc, HTTPException):
        return exc
    capture_exception(exc)
    return _text_error(exc, status=500)


def run(host: str | None = None, port: int | None = None) -> None:
    """Serve the app with the werkzeug server on the configured address."""
    api_cfg = get_settings().api
    app.run(host=host or api_cfg.host, port=port or api_cfg.port)


if __name__ == "__main__":
    run()
