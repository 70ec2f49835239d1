"""Response helpers for the report API.

The report is consumed by browsers, dashboards and curl alike, so every
response is plain UTF-8 text with a permissive CORS header.
"""

from typing import Any

from flask import Response

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
ERROR_PREFIX = "错误: "


def _text(body: str, *, status: int = 200) -> Response:
    """Create a plain-text response with CORS enabled.

    Args:
        body: Response text
        status: HTTP status code (default 200)

    Returns:
        Flask response
    """
    resp = Response(body, status=status, content_type=TEXT_CONTENT_TYPE)
    resp.headers.update(CORS_HEADERS)
    return resp


def _text_error(exc: Any, *, status: int = 500) -> Response:
    """Create the error response, `错误: {message}`."""
    return _text(f"{ERROR_PREFIX}{exc}", status=status)
