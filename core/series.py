"""
Gap-filling series builders.

The store returns sparse, unordered aggregates: buckets without activity are
simply absent. These builders walk the complete bucket sequence of a window
and emit exactly one point per bucket, zero-filled where the store had
nothing. Output order is always bucket order, never store order.
"""
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

from core.models import (
    ChartWindow,
    Granularity,
    HourlySale,
    RawAggregate,
    SeriesPoint,
)
from core.periods import as_utc

HOURS_PER_DAY = 24


def build_hourly_series(rows: Optional[Iterable[HourlySale]]) -> List[HourlySale]:
    """
    Densify hourly sales into 24 points, hours 0..23 in order.

    Rows with an hour outside 0..23 are ignored; for a repeated hour the
    last row wins.
    """
    table: List[Optional[HourlySale]] = [None] * HOURS_PER_DAY
    for row in rows or ():
        if 0 <= row.hour < HOURS_PER_DAY:
            table[row.hour] = row

    return [
        HourlySale(hour=hour, revenue=row.revenue, orders=row.orders) if row else HourlySale(hour=hour)
        for hour, row in enumerate(table)
    ]


def iter_buckets(start: datetime, end: datetime, granularity: Granularity) -> Iterator[datetime]:
    """
    Yield bucket starts from the bucket containing `start` through the
    bucket containing `end`, inclusive, in ascending order.
    """
    bucket = granularity.truncate(as_utc(start))
    end = as_utc(end)
    while bucket <= end:
        yield bucket
        bucket = granularity.advance(bucket)


def count_buckets(start: datetime, end: datetime, granularity: Granularity) -> int:
    """Number of buckets a dense series over the window contains."""
    return sum(1 for _ in iter_buckets(start, end, granularity))


def build_chart_series(rows: Optional[Iterable[RawAggregate]], window: ChartWindow) -> List[SeriesPoint]:
    """
    Densify per-bucket aggregates over a chart window.

    Store rows are sorted by bucket and merged against the generated bucket
    sequence. Rows that fall outside the window, or do not sit on a bucket
    boundary, are dropped; for a repeated bucket the last row wins.
    """
    granularity = window.granularity
    ordered = sorted(
        (RawAggregate(**{**vars(row), "bucket": as_utc(row.bucket)}) for row in rows or ()),
        key=lambda row: row.bucket,
    )

    points: List[SeriesPoint] = []
    cursor = 0
    for bucket in iter_buckets(window.start, window.end, granularity):
        # Skip rows before this bucket (before the window or misaligned)
        while cursor < len(ordered) and ordered[cursor].bucket < bucket:
            cursor += 1

        match = None
        while cursor < len(ordered) and ordered[cursor].bucket == bucket:
            match = ordered[cursor]
            cursor += 1

        points.append(SeriesPoint.from_aggregate(bucket, granularity.label(bucket), match))

    return points
