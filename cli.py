"""
EC2 traffic report CLI (flat-layout friendly).

Usage
-----
ec2-traffic-report report                  # build, push, print Markdown
ec2-traffic-report report --silent         # build and print, no push
ec2-traffic-report report --format plain   # print the push payload instead
ec2-traffic-report serve --port 8080       # run the HTTP endpoint

Configuration comes from the environment (and a local `.env`), see infra/config.py.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from contracts.services import build_services
from infra.config import get_settings
from infra.logging_config import StructuredLogger, capture_exception, init_observability
from services.report_service import run_report

logger = StructuredLogger(__name__)


def cmd_report(args: argparse.Namespace) -> int:
    try:
        settings = get_settings(reload=True)
        services = build_services(settings.aws)
        result = run_report(settings, services, notify=not args.silent)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        capture_exception(exc, command="report")
        print(f"错误: {exc}", file=sys.stderr)
        return 1

    print(result.plain if args.format == "plain" else result.markdown)
    for delivery in result.deliveries:
        if not delivery.ok and not delivery.skipped:
            print(f"push failed: {delivery.detail}", file=sys.stderr)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from apps.flask_api.flask_app import run

    logger.info("http_server_starting", host=args.host, port=args.port)
    run(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ec2-traffic-report", description="EC2 monthly traffic report")
    sub = p.add_subparsers(dest="command", required=True)

    p_report = sub.add_parser("report", help="Build this month's report once (for cron / schedulers)")
    p_report.add_argument("--silent", action="store_true", help="Do not push to Gotify/Telegram")
    p_report.add_argument(
        "--format",
        choices=("markdown", "plain"),
        default="markdown",
        help="What to print on stdout",
    )
    p_report.set_defaults(func=cmd_report)

    p_serve = sub.add_parser("serve", help="Run the HTTP endpoint")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.set_defaults(func=cmd_serve)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    init_observability()
    args = build_parser().parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
