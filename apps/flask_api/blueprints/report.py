"""Traffic report Blueprint.

One catch-all route: every path and method renders the current month's
report. Only the root path pushes notifications; any other path is a silent
preview.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from flask import Blueprint, request

from apps.flask_api.utils import _text
from contracts.services import build_services
from infra.config import get_settings
from infra.logging_config import StructuredLogger, set_request_context
from services.report_service import run_report

report_bp = Blueprint("report", __name__)

logger = StructuredLogger(__name__)

NOTIFY_PATH = "/"
# GET also answers HEAD. Methods outside this list reach the report through
# the app-level 405 handler.
ANY_METHOD = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Replaced in tests with a fixed clock.
now_fn: Optional[Callable[[], datetime]] = None


@report_bp.route("/", defaults={"path": ""}, methods=ANY_METHOD, provide_automatic_options=False)
@report_bp.route("/<path:path>", methods=ANY_METHOD, provide_automatic_options=False)
def traffic_report(path: str) -> Any:
    """Render the monthly traffic table as Markdown.

    Returns:
        Plain-text response with the Markdown table. Errors are turned into
        500 responses by the app-level error handler.
    """
    _ = path
    notify = request.path == NOTIFY_PATH
    if not notify:
        logger.info("push_suppressed_for_path", request_path=request.path)

    settings = get_settings()
    set_request_context(instance_id=settings.report.instance_id, region=settings.aws.region)
    services = build_services(settings.aws)
    result = run_report(settings, services, notify=notify, now_fn=now_fn)
    return _text(result.markdown)
