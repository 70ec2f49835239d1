"""Telegram Bot API sender."""

from __future__ import annotations

from infra.logging_config import StructuredLogger
from services.notify import _http
from services.notify._http import HttpResponse

logger = StructuredLogger(__name__)

CHANNEL = "telegram"
TELEGRAM_API_BASE = "https://api.telegram.org"


def telegram_send_url(bot_token: str) -> str:
    return f"{TELEGRAM_API_BASE}/bot{bot_token}/sendMessage"


def code_block(message: str) -> str:
    """Wrap text in a Markdown code fence so Telegram keeps it monospaced."""
    return "```\n" + message + "\n```"


def send_telegram_message(
    bot_token: str,
    chat_id: str,
    message: str,
    *,
    timeout_s: float = 10.0,
) -> HttpResponse:
    """Send `message` to `chat_id` as a fenced Markdown block."""
    payload = {
        "chat_id": chat_id,
        "text": code_block(message),
        "parse_mode": "Markdown",
    }
    logger.debug("telegram_push_request", chat_id=chat_id, chars=len(payload["text"]))
    resp = _http.post_json(
        telegram_send_url(bot_token),
        payload,
        channel=CHANNEL,
        timeout_s=timeout_s,
    )
    logger.info("telegram_push_sent", status=resp.status, response_body=resp.body)
    return resp
