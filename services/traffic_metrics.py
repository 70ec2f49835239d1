"""EC2 liveness check and CloudWatch network metrics for the monthly report."""

from __future__ import annotations

import asyncio
import calendar
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Any

from contracts.services import Services
from infra.logging_config import StructuredLogger
from pipeline.report_table import parse_timestamp

logger = StructuredLogger(__name__)

NAMESPACE = "AWS/EC2"
METRIC_IN = "NetworkIn"
METRIC_OUT = "NetworkOut"
DAILY_PERIOD_SECONDS = 86400


class ReportConfigError(ValueError):
    """Raised when the report cannot run because a required setting is missing."""


@dataclass(frozen=True)
class MonthWindow:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class NetworkSeries:
    """Raw datapoints of the two network metrics."""

    inbound: list[dict[str, Any]]
    outbound: list[dict[str, Any]]


def month_window(now: datetime, tz: tzinfo = UTC) -> MonthWindow:
    """First day 00:00:00 to last day 23:59:59 of the month containing `now`.

    Boundaries are computed in `tz` and returned as aware datetimes.
    """
    local = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
    last_day = calendar.monthrange(local.year, local.month)[1]
    start = datetime(local.year, local.month, 1, tzinfo=tz)
    end = datetime(local.year, local.month, last_day, 23, 59, 59, tzinfo=tz)
    return MonthWindow(start=start, end=end)


def check_instance(ec2: Any, instance_id: str) -> None:
    """Describe the instance so bad credentials or ids fail before the metric calls.

    botocore errors propagate to the caller.
    """
    if not instance_id:
        raise ReportConfigError("EC2_INSTANCE_ID is not configured")
    ec2.describe_instances(InstanceIds=[instance_id])
    logger.debug("ec2_instance_checked", instance_id=instance_id)


def get_network_datapoints(
    cloudwatch: Any,
    *,
    metric_name: str,
    instance_id: str,
    window: MonthWindow,
) -> list[dict[str, Any]]:
    """Daily `Average` datapoints of one EC2 network metric."""
    resp = cloudwatch.get_metric_statistics(
        Namespace=NAMESPACE,
        MetricName=metric_name,
        Dimensions=[{"Name": "InstanceId", "Value": instance_id}],
        StartTime=window.start,
        EndTime=window.end,
        Period=DAILY_PERIOD_SECONDS,
        Statistics=["Average"],
    )
    datapoints = [dict(dp) for dp in resp.get("Datapoints", []) or []]
    logger.debug("cloudwatch_datapoints_fetched", metric=metric_name, count=len(datapoints))
    return datapoints


async def fetch_network_series_async(
    cloudwatch: Any,
    *,
    instance_id: str,
    window: MonthWindow,
) -> NetworkSeries:
    """Fetch NetworkIn and NetworkOut concurrently and join both results."""

    async def _fetch(metric_name: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(
            get_network_datapoints,
            cloudwatch,
            metric_name=metric_name,
            instance_id=instance_id,
            window=window,
        )

    inbound, outbound = await asyncio.gather(_fetch(METRIC_IN), _fetch(METRIC_OUT))
    return NetworkSeries(inbound=inbound, outbound=outbound)


def fetch_network_series(
    cloudwatch: Any,
    *,
    instance_id: str,
    window: MonthWindow,
) -> NetworkSeries:
    """Blocking wrapper around :func:`fetch_network_series_async`."""
    return asyncio.run(
        fetch_network_series_async(cloudwatch, instance_id=instance_id, window=window)
    )


def _series_key(point: Mapping[str, Any]) -> Any:
    ts = parse_timestamp(point.get("Timestamp"))
    if isinstance(ts, datetime):
        # Naive timestamps are UTC; normalize so both spellings share a key.
        return ts.astimezone(UTC) if ts.tzinfo else ts.replace(tzinfo=UTC)
    return ts


def merge_datapoints(
    inbound: Iterable[Mapping[str, Any]],
    outbound: Iterable[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Join the two series by timestamp.

    Every inbound datapoint keeps its fields and gains ``OutAverage``. Outbound
    datapoints without an inbound partner become rows with ``Average == 0``.
    A missing side counts as 0.
    """
    out_by_key: dict[Any, float] = {}
    out_order: list[tuple[Any, Mapping[str, Any]]] = []
    for point in outbound:
        key = _series_key(point)
        if key not in out_by_key:
            out_order.append((key, point))
        out_by_key[key] = float(point.get("Average") or 0.0)

    merged: list[dict[str, Any]] = []
    seen: set[Any] = set()
    for point in inbound:
        key = _series_key(point)
        seen.add(key)
        row = dict(point)
        row["OutAverage"] = out_by_key.get(key, 0.0)
        merged.append(row)

    for key, point in out_order:
        if key in seen:
            continue
        merged.append({
            "Timestamp": point.get("Timestamp"),
            "Average": 0.0,
            "OutAverage": out_by_key[key],
        })
    return merged


def collect_month_datapoints(
    services: Services,
    *,
    instance_id: str,
    now: datetime,
    tz: tzinfo = UTC,
) -> list[dict[str, Any]]:
    """Liveness check, then both metrics for the current month, merged."""
    check_instance(services.ec2, instance_id)
    window = month_window(now, tz)
    series = fetch_network_series(services.cloudwatch, instance_id=instance_id, window=window)
    merged = merge_datapoints(series.inbound, series.outbound)
    logger.info(
        "network_metrics_collected",
        instance_id=instance_id,
        region=services.region,
        inbound=len(series.inbound),
        outbound=len(series.outbound),
        merged=len(merged),
    )
    return merged
