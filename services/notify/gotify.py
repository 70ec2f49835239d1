"""Gotify push sender."""

from __future__ import annotations

from infra.logging_config import StructuredLogger
from services.notify import _http
from services.notify._http import HttpResponse

logger = StructuredLogger(__name__)

CHANNEL = "gotify"
GOTIFY_TITLE = "EC2流量日报"
GOTIFY_PRIORITY = 5


def gotify_message_url(base_url: str, token: str) -> str:
    return f"{base_url}?token={token}"


def send_gotify_message(
    base_url: str,
    token: str,
    message: str,
    *,
    timeout_s: float = 10.0,
) -> HttpResponse:
    """POST one message to a Gotify server (`base_url` is the /message endpoint)."""
    payload = {
        "title": GOTIFY_TITLE,
        "message": message,
        "priority": GOTIFY_PRIORITY,
    }
    resp = _http.post_json(
        gotify_message_url(base_url, token),
        payload,
        channel=CHANNEL,
        timeout_s=timeout_s,
    )
    logger.info("gotify_push_sent", status=resp.status, response_body=resp.body)
    return resp
