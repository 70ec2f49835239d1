"""Daily traffic table: aggregation and rendering.

Input is a list of merged CloudWatch datapoints, each a mapping with
``Timestamp`` (datetime or ISO string), ``Average`` (bytes in) and
``OutAverage`` (bytes out). Output is a list of :data:`ReportRow` tuples,
one per calendar day in date order, followed by one totals row.

Both renderers treat the last row as the totals row.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

BYTE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")

TOTAL_LABEL = "总计"
HEADER: tuple[str, str, str] = ("日期", "输入流量", "输出流量")
COLUMN_SEP = "  "

ReportRow = tuple[str, str, str]


@dataclass
class DailyStat:
    """Running sums for one calendar day."""

    date: str
    in_sum: float = 0.0
    out_sum: float = 0.0
    count: int = 0

    def add(self, in_value: float, out_value: float) -> None:
        self.in_sum += in_value
        self.out_sum += out_value
        self.count += 1

    @property
    def avg_in(self) -> float:
        return self.in_sum / self.count

    @property
    def avg_out(self) -> float:
        return self.out_sum / self.count


def format_bytes(value: float) -> str:
    """Format a byte count with binary units, e.g. ``1536 -> "1.50 KB"``."""
    amount = float(value)
    unit_index = 0
    while amount >= 1024 and unit_index < len(BYTE_UNITS) - 1:
        amount /= 1024
        unit_index += 1
    return f"{amount:.2f} {BYTE_UNITS[unit_index]}"


def parse_timestamp(timestamp: Any) -> Any:
    """Turn an ISO string into a datetime; other values pass through."""
    if isinstance(timestamp, str):
        text = timestamp.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    return timestamp


def datapoint_date(timestamp: Any) -> str:
    """Return the UTC ``YYYY-MM-DD`` date of a datapoint timestamp.

    Naive datetimes are taken as UTC, the way CloudWatch reports them.
    """
    timestamp = parse_timestamp(timestamp)
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(UTC)
        return timestamp.date().isoformat()
    if isinstance(timestamp, date):
        return timestamp.isoformat()
    raise TypeError(f"unsupported datapoint timestamp: {timestamp!r}")


def aggregate_daily(datapoints: Iterable[Mapping[str, Any]]) -> dict[str, DailyStat]:
    """Group datapoints by calendar date."""
    stats: dict[str, DailyStat] = {}
    for point in datapoints:
        day = datapoint_date(point["Timestamp"])
        stat = stats.get(day)
        if stat is None:
            stat = stats[day] = DailyStat(date=day)
        stat.add(float(point.get("Average") or 0.0), float(point.get("OutAverage") or 0.0))
    return stats


def build_table_data(datapoints: Iterable[Mapping[str, Any]]) -> list[ReportRow]:
    """Build one row per day (averaged) plus a final totals row.

    The totals row is the sum of the per-day averages.
    """
    stats = aggregate_daily(datapoints)
    rows: list[ReportRow] = []
    total_in = 0.0
    total_out = 0.0
    for day in sorted(stats):
        stat = stats[day]
        avg_in, avg_out = stat.avg_in, stat.avg_out
        total_in += avg_in
        total_out += avg_out
        rows.append((day, format_bytes(avg_in), format_bytes(avg_out)))
    rows.append((TOTAL_LABEL, format_bytes(total_in), format_bytes(total_out)))
    return rows


def _split_rows(rows: Sequence[ReportRow]) -> tuple[Sequence[ReportRow], ReportRow]:
    if not rows:
        raise ValueError("rows must contain at least the totals row")
    return rows[:-1], rows[-1]


def build_plain_table(rows: Sequence[ReportRow]) -> str:
    """Render a fixed-width text table for notification payloads."""
    daily, total = _split_rows(rows)
    widths = [0] * len(HEADER)
    for row in (HEADER, *rows):
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _line(row: Sequence[str]) -> str:
        return COLUMN_SEP.join(cell.ljust(widths[i]) for i, cell in enumerate(row))

    header_line = _line(HEADER)
    separator = "-" * len(header_line)
    lines = [header_line, separator]
    lines.extend(_line(row) for row in daily)
    lines.append(separator)
    lines.append(_line(total))
    return "\n".join(lines)


def build_markdown_table(rows: Sequence[ReportRow]) -> str:
    """Render a GitHub-flavored Markdown table with a bold totals row."""
    daily, total = _split_rows(rows)
    parts = [
        "| " + " | ".join(HEADER) + " |\n",
        "|------|----------|----------|\n",
    ]
    for day, in_text, out_text in daily:
        parts.append(f"| {day} | {in_text} | {out_text} |\n")
    parts.append(f"| **{total[0]}** | **{total[1]}** | **{total[2]}** |\n")
    return "".join(parts)
