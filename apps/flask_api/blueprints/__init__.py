"""Flask API Blueprints package.

- report: catch-all traffic report endpoint
"""

from apps.flask_api.blueprints.report import report_bp

__all__ = [
    "report_bp",
]
