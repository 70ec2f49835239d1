"""JSON-over-HTTP POST helper shared by the notification senders."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from version import ENGINE_NAME, ENGINE_VERSION


class NotificationError(RuntimeError):
    """Raised when a push could not be delivered."""

    def __init__(self, channel: str, message: str, *, status: int | None = None) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel
        self.status = status


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: str


def post_json(
    url: str,
    payload: Mapping[str, Any],
    *,
    channel: str,
    timeout_s: float,
) -> HttpResponse:
    """POST `payload` as JSON and return status + body text.

    Bad URLs, transport failures and non-2xx answers raise
    :class:`NotificationError`.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": f"{ENGINE_NAME}/{ENGINE_VERSION}",
    }

    try:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req = Request(url=url, method="POST", headers=headers, data=data)
        with urlopen(req, timeout=timeout_s) as resp:
            status = int(getattr(resp, "status", 200))
            body = resp.read().decode("utf-8", errors="replace") if resp else ""
    except HTTPError as e:
        status = int(getattr(e, "code", 0))
        body = e.read().decode("utf-8", errors="replace") if e.fp else ""
        raise NotificationError(channel, f"HTTP {status}: {body}", status=status) from e
    except URLError as e:
        raise NotificationError(channel, f"connection error: {e.reason}") from e
    except (TypeError, ValueError, HTTPException) as e:
        # Scheme-less URLs, spaces or non-ASCII characters in tokens, unserializable payloads.
        raise NotificationError(channel, f"invalid request: {e}") from e
    except OSError as e:
        # Timeouts and resets while reading the answer.
        raise NotificationError(channel, f"transport error: {e}") from e

    if not 200 <= status < 300:
        raise NotificationError(channel, f"HTTP {status}: {body}", status=status)
    return HttpResponse(status=status, body=body)
