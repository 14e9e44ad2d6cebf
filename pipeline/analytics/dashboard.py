"""Dashboard payload assembled from the metrics and series builders."""

from collections.abc import Sequence
from datetime import UTC, date, datetime
from decimal import Decimal

from pydantic import BaseModel

from pipeline.analytics.metrics import (
    DEFAULT_POLICY,
    MetricsPolicy,
    share_breakdown,
    split_by_category,
    summarize,
)
from pipeline.analytics.series import build_monthly_series, merge_series, trailing_window
from services.billing.schema import (
    Expense,
    Invoice,
    MergedSeriesPoint,
    MetricsSnapshot,
    ShareBreakdown,
)


class Dashboard(BaseModel):
    """Everything a renderer needs, as unformatted numbers.

    Attributes:
        summary: Global metrics over the full collections
        shares: Percent-of-revenue bars
        monthly: Revenue vs. expenses per month, limited to the window
        expenses_by_category: Expense distribution over the full collection
        months: Window length used for ``monthly``
        as_of: Date closing the window
    """

    summary: MetricsSnapshot
    shares: ShareBreakdown
    monthly: list[MergedSeriesPoint]
    expenses_by_category: dict[str, Decimal]
    months: int
    as_of: date


def build_dashboard(
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    policy: MetricsPolicy | None = None,
    months: int = 6,
    as_of: date | None = None,
) -> Dashboard:
    """Recompute every dashboard view from the current collections.

    Args:
        invoices: All stored invoices
        expenses: All stored expenses
        policy: Status policy (defaults to DEFAULT_POLICY)
        months: Trailing window for the monthly series
        as_of: Window end date (defaults to today in UTC)

    Returns:
        Dashboard payload
    """
    policy = policy or DEFAULT_POLICY
    as_of = as_of or datetime.now(UTC).date()

    summary = summarize(invoices, expenses, policy)

    charted = invoices
    if policy.filter_revenue_series:
        charted = [inv for inv in invoices if inv.status in policy.revenue_statuses]

    monthly = merge_series(
        build_monthly_series(charted, "created_at", "total"),
        build_monthly_series(expenses, "date", "amount"),
    )

    return Dashboard(
        summary=summary,
        shares=share_breakdown(summary),
        monthly=trailing_window(monthly, months, as_of),
        expenses_by_category=split_by_category(expenses),
        months=months,
        as_of=as_of,
    )
