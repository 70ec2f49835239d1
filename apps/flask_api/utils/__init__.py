"""Flask API utilities package.

- responses: plain-text + CORS response helpers
"""

from apps.flask_api.utils.responses import _text, _text_error

__all__ = [
    "_text",
    "_text_error",
]
