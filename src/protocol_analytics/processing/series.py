"""Per-period series arithmetic."""

from collections.abc import Iterable, Sequence

from protocol_analytics.shared.models.snapshots import PeriodCount, TimeSeriesPoint


def derive_incrementals(points: Sequence[TimeSeriesPoint]) -> list[TimeSeriesPoint]:
    """Recompute ``incremental`` from ``cumulative``, floored at zero.

    Points are returned ordered by period. The first point's incremental is
    its cumulative value.

    >>> [p.incremental for p in derive_incrementals(
    ...     [TimeSeriesPoint(period=m, cumulative=c, incremental=0)
    ...      for m, c in (("2024-01", 10), ("2024-02", 10), ("2024-03", 25))]
    ... )]
    [10, 0, 15]
    """
    ordered = sorted(points, key=lambda p: p.period)
    derived = []
    previous = 0
    for point in ordered:
        derived.append(
            TimeSeriesPoint(
                period=point.period,
                cumulative=point.cumulative,
                incremental=max(0, point.cumulative - previous),
            )
        )
        previous = point.cumulative
    return derived


def sum_series_by_period(
    series: Iterable[Sequence[TimeSeriesPoint]],
) -> list[TimeSeriesPoint]:
    """Sum cumulative values per period across sources.

    Sources share no row-level keys, so nothing is merged beyond the period
    label. A source missing a period contributes nothing to it.
    """
    totals: dict[str, float] = {}
    for points in series:
        for point in points:
            totals[point.period] = totals.get(point.period, 0) + point.cumulative
    return derive_incrementals(
        [
            TimeSeriesPoint(period=period, cumulative=value, incremental=0)
            for period, value in totals.items()
        ]
    )


def sum_counts_by_period(series: Iterable[Sequence[PeriodCount]]) -> list[PeriodCount]:
    totals: dict[str, float] = {}
    for points in series:
        for point in points:
            totals[point.period] = totals.get(point.period, 0) + point.count
    return [
        PeriodCount(period=period, count=totals[period]) for period in sorted(totals)
    ]
