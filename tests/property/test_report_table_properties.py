"""Property-based tests for the daily traffic table."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

pytest.importorskip("hypothesis")
from hypothesis import given, settings  # type: ignore  # noqa: E402
from hypothesis import strategies as st

from pipeline.report_table import (
    TOTAL_LABEL,
    build_markdown_table,
    build_plain_table,
    build_table_data,
)

_DAY = st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31))
_BYTES = st.floats(min_value=0, max_value=1e15, allow_nan=False, allow_infinity=False)
_POINT = st.fixed_dictionaries(
    {
        "day": _DAY,
        "hour": st.integers(min_value=0, max_value=23),
        "Average": _BYTES,
        "OutAverage": _BYTES,
    }
)


def _as_datapoints(points: list[dict]) -> list[dict]:
    return [
        {
            "Timestamp": datetime.combine(p["day"], datetime.min.time(), tzinfo=timezone.utc)
            + timedelta(hours=p["hour"]),
            "Average": p["Average"],
            "OutAverage": p["OutAverage"],
        }
        for p in points
    ]


@settings(max_examples=200, deadline=None, database=None)
@given(points=st.lists(_POINT, max_size=40))
def test_row_count_is_distinct_days_plus_total(points: list[dict]) -> None:
    """N distinct calendar dates always give N + 1 rows, totals last."""
    rows = build_table_data(_as_datapoints(points))
    distinct = {p["day"].isoformat() for p in points}

    assert len(rows) == len(distinct) + 1
    assert rows[-1][0] == TOTAL_LABEL
    assert [r[0] for r in rows[:-1]] == sorted(distinct)


@settings(max_examples=100, deadline=None, database=None)
@given(points=st.lists(_POINT, max_size=40))
def test_plain_table_lines_share_one_width(points: list[dict]) -> None:
    text = build_plain_table(build_table_data(_as_datapoints(points)))
    assert len({len(line) for line in text.split("\n")}) == 1


@settings(max_examples=100, deadline=None, database=None)
@given(points=st.lists(_POINT, max_size=20))
def test_markdown_table_has_one_line_per_row_plus_header(points: list[dict]) -> None:
    rows = build_table_data(_as_datapoints(points))
    md = build_markdown_table(rows)
    assert md.count("\n") == len(rows) + 2
    assert md.splitlines()[-1].startswith(f"| **{TOTAL_LABEL}** |")
