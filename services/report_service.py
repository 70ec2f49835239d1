"""Monthly EC2 traffic report orchestration.

fetch (EC2 liveness + two CloudWatch metrics) -> aggregate -> render
-> optional push to Gotify / Telegram.

AWS and configuration errors propagate; push failures never do.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from contracts.services import Services
from infra.config import Settings
from infra.logging_config import StructuredLogger
from pipeline.report_table import (
    ReportRow,
    build_markdown_table,
    build_plain_table,
    build_table_data,
)
from services.notify import DeliveryResult, dispatch_report
from services.traffic_metrics import ReportConfigError, collect_month_datapoints

logger = StructuredLogger(__name__)

REPORT_TITLE_SUFFIX = "EC2流量使用统计"


@dataclass(frozen=True)
class ReportResult:
    title: str
    plain: str
    markdown: str
    push_content: str
    rows: list[ReportRow]
    deliveries: list[DeliveryResult] = field(default_factory=list)


def report_title(now: datetime) -> str:
    return f"{now.date().isoformat()} {REPORT_TITLE_SUFFIX}"


def run_report(
    settings: Settings,
    services: Services,
    *,
    notify: bool,
    now_fn: Callable[[], datetime] | None = None,
) -> ReportResult:
    """Build this month's traffic report and optionally push it.

    `now_fn` returns the current time; tests pass a fixed clock.
    """
    instance_id = settings.report.instance_id
    if not instance_id:
        raise ReportConfigError("EC2_INSTANCE_ID is not configured")

    tz = settings.report.tzinfo()
    now = (now_fn or (lambda: datetime.now(UTC)))().astimezone(tz)

    datapoints = collect_month_datapoints(services, instance_id=instance_id, now=now, tz=tz)
    rows = build_table_data(datapoints)
    plain = build_plain_table(rows)
    markdown = build_markdown_table(rows)
    title = report_title(now)
    push_content = f"{title}\n\n{plain}"

    deliveries: list[DeliveryResult] = []
    if notify:
        deliveries = dispatch_report(settings.notify, push_content)
    else:
        logger.info("push_suppressed", reason="preview request")

    logger.info(
        "report_built",
        instance_id=instance_id,
        days=len(rows) - 1,
        deliveries=[(d.channel, d.ok) for d in deliveries],
    )
    return ReportResult(
        title=title,
        plain=plain,
        markdown=markdown,
        push_content=push_content,
        rows=rows,
        deliveries=deliveries,
    )
