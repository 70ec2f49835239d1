"""Channel selection and best-effort delivery of the report."""

from __future__ import annotations

from typing import NamedTuple

from infra.config import NotifyConfig
from infra.logging_config import StructuredLogger
from services.notify import gotify, telegram
from services.notify._http import NotificationError

logger = StructuredLogger(__name__)

# PUSH_CHANNEL selector -> channels, in delivery order. Anything else selects none.
_CHANNELS_BY_SELECTOR: dict[str, tuple[str, ...]] = {
    "1": (gotify.CHANNEL,),
    "2": (telegram.CHANNEL,),
    "0": (gotify.CHANNEL, telegram.CHANNEL),
}


class DeliveryResult(NamedTuple):
    """Outcome of one channel attempt."""

    channel: str
    ok: bool
    skipped: bool = False
    status: int | None = None
    detail: str = ""


def selected_channels(push_channel: str) -> tuple[str, ...]:
    return _CHANNELS_BY_SELECTOR.get(str(push_channel).strip(), ())


def _deliver_gotify(cfg: NotifyConfig, message: str) -> DeliveryResult:
    if not (cfg.gotify_url and cfg.gotify_token):
        logger.info("push_skipped", channel=gotify.CHANNEL, reason="GOTIFY_URL or GOTIFY_TOKEN not set")
        return DeliveryResult(channel=gotify.CHANNEL, ok=False, skipped=True, detail="not configured")
    resp = gotify.send_gotify_message(
        cfg.gotify_url, cfg.gotify_token, message, timeout_s=cfg.timeout
    )
    return DeliveryResult(channel=gotify.CHANNEL, ok=True, status=resp.status)


def _deliver_telegram(cfg: NotifyConfig, message: str) -> DeliveryResult:
    if not (cfg.tg_bot_token and cfg.tg_chat_id):
        logger.info("push_skipped", channel=telegram.CHANNEL, reason="TG_BOT_TOKEN or TG_CHAT_ID not set")
        return DeliveryResult(channel=telegram.CHANNEL, ok=False, skipped=True, detail="not configured")
    resp = telegram.send_telegram_message(
        cfg.tg_bot_token, cfg.tg_chat_id, message, timeout_s=cfg.timeout
    )
    return DeliveryResult(channel=telegram.CHANNEL, ok=True, status=resp.status)


_SENDERS = {
    gotify.CHANNEL: _deliver_gotify,
    telegram.CHANNEL: _deliver_telegram,
}


def dispatch_report(cfg: NotifyConfig, message: str) -> list[DeliveryResult]:
    """Push `message` to every selected channel.

    Each channel is isolated: a failed push is logged and recorded, and the
    next channel is still attempted. No sender error escapes this function.
    """
    channels = selected_channels(cfg.push_channel)
    if not channels:
        logger.info("push_disabled", push_channel=cfg.push_channel)
        return []

    results: list[DeliveryResult] = []
    for channel in channels:
        logger.info("push_started", channel=channel)
        try:
            result = _SENDERS[channel](cfg, message)
        except NotificationError as exc:
            logger.warning("push_failed", channel=channel, status=exc.status, detail=str(exc))
            result = DeliveryResult(channel=channel, ok=False, status=exc.status, detail=str(exc))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("push_crashed", exc=exc, channel=channel, error_type=type(exc).__name__)
            result = DeliveryResult(channel=channel, ok=False, detail=f"{channel}: {exc}")
        results.append(result)
    return results
