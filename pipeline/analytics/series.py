"""Monthly time series for charting.

Records are bucketed by ``YYYY-MM`` period keys. Keys in that format sort
lexicographically in chronological order, so plain string sorting is used.
Months without records are not filled in.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

from services.billing.coercion import ZERO, period_key, to_amount, to_datetime
from services.billing.schema import MergedSeriesPoint, SeriesPoint

logger = logging.getLogger(__name__)

PointT = TypeVar("PointT", SeriesPoint, MergedSeriesPoint)


def _read_field(record: Any, name: str) -> Any:
    """Read a field from a model or a mapping."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def build_monthly_series(
    records: Iterable[Any], date_field: str, value_field: str
) -> list[SeriesPoint]:
    """Sum a value per calendar month.

    Args:
        records: Models or mappings
        date_field: Name of the date/datetime/ISO-string field to bucket by
        value_field: Name of the numeric field to sum

    Returns:
        One point per distinct period, ascending, no duplicate periods
    """
    buckets: dict[str, Decimal] = defaultdict(lambda: ZERO)
    skipped = 0

    for record in records:
        moment = to_datetime(_read_field(record, date_field))
        if moment is None:
            skipped += 1
            continue
        buckets[period_key(moment)] += to_amount(_read_field(record, value_field))

    if skipped:
        logger.warning(f"Skipped {skipped} record(s) with unreadable '{date_field}'")

    return [SeriesPoint(period=key, value=buckets[key]) for key in sorted(buckets)]


def merge_series(
    revenue_series: Iterable[SeriesPoint], expense_series: Iterable[SeriesPoint]
) -> list[MergedSeriesPoint]:
    """Outer-join revenue and expense series on period.

    A period present in only one input gets 0 for the other side.
    """
    merged: dict[str, MergedSeriesPoint] = {}
    for point in revenue_series:
        merged[point.period] = MergedSeriesPoint(period=point.period, revenue=point.value)
    for point in expense_series:
        entry = merged.setdefault(point.period, MergedSeriesPoint(period=point.period))
        entry.expenses = point.value

    return [merged[key] for key in sorted(merged)]


def _months_back(as_of: date, months: int) -> str:
    """Period key of the first month in a window of ``months`` ending at as_of."""
    index = as_of.year * 12 + (as_of.month - 1) - (months - 1)
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def trailing_window(series: Sequence[PointT], months: int, as_of: date) -> list[PointT]:
    """Keep points within the last ``months`` calendar months up to as_of.

    The window includes as_of's own month. ``months`` below 1 yields an
    empty list.

    Args:
        series: Ascending series (SeriesPoint or MergedSeriesPoint)
        months: Window length in months (e.g. 3, 6, 12)
        as_of: Reference date closing the window

    Returns:
        Filtered points, order preserved
    """
    if months < 1:
        return []
    start = _months_back(as_of, months)
    end = period_key(as_of)
    return [point for point in series if start <= point.period <= end]
