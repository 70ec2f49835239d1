"""Push notification channels for the traffic report."""

from services.notify._http import NotificationError
from services.notify.dispatcher import DeliveryResult, dispatch_report, selected_channels
from services.notify.gotify import send_gotify_message
from services.notify.telegram import send_telegram_message

__all__ = [
    "DeliveryResult",
    "NotificationError",
    "dispatch_report",
    "selected_channels",
    "send_gotify_message",
    "send_telegram_message",
]
