"""Summary metrics for invoices and expenses.

Computes revenue, collected tax, expense totals, net result, category splits
and clamped percentage ratios. Every function takes the full collections and
returns plain values; nothing is cached between calls.
"""

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from services.billing.coercion import ZERO, to_amount
from services.billing.schema import (
    Expense,
    Invoice,
    InvoiceStatus,
    MetricsSnapshot,
    ShareBreakdown,
)


class MetricsPolicy(BaseModel):
    """Which invoice statuses feed each metric.

    Revenue counts only Paid and Sent invoices. Collected tax is
    informational and counts every status, Draft and Overdue included.
    """

    revenue_statuses: frozenset[InvoiceStatus] = frozenset(
        {InvoiceStatus.PAID, InvoiceStatus.SENT}
    )
    collected_tax_statuses: frozenset[InvoiceStatus] = frozenset(InvoiceStatus)

    # Monthly revenue chart uses every invoice unless this is set
    filter_revenue_series: bool = Field(
        default=False,
        description="Restrict the monthly revenue series to revenue_statuses",
    )


DEFAULT_POLICY = MetricsPolicy()


def summarize(
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    policy: MetricsPolicy | None = None,
) -> MetricsSnapshot:
    """Compute global summary metrics.

    Args:
        invoices: All stored invoices
        expenses: All stored expenses
        policy: Status policy (defaults to DEFAULT_POLICY)

    Returns:
        MetricsSnapshot with revenue, collected tax, expense total and net
    """
    policy = policy or DEFAULT_POLICY

    revenue = sum(
        (inv.total for inv in invoices if inv.status in policy.revenue_statuses), ZERO
    )
    collected_tax = sum(
        (inv.tax_total for inv in invoices if inv.status in policy.collected_tax_statuses),
        ZERO,
    )
    expense_total = sum((exp.amount for exp in expenses), ZERO)

    return MetricsSnapshot(
        revenue=revenue,
        collected_tax=collected_tax,
        expense_total=expense_total,
        net=revenue - expense_total,
    )


def split_by_category(expenses: Iterable[Expense | Mapping[str, Any]]) -> dict[str, Decimal]:
    """Sum expense amounts per category.

    Accepts Expense models or plain mappings with ``category`` and ``amount``.
    Key order is not significant.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        if isinstance(expense, Mapping):
            category, amount = expense.get("category"), expense.get("amount")
        else:
            category, amount = expense.category, expense.amount
        totals[str(category)] += to_amount(amount)
    return dict(totals)


def safe_percent(part: Any, total: Any) -> float:
    """Return ``part / total * 100`` clamped to [0, 100].

    Returns 0 when total is zero or negative, or when the ratio is not a
    finite number.

    Args:
        part: Numerator
        total: Denominator

    Returns:
        Percentage between 0 and 100
    """
    denominator = float(to_amount(total))
    if not math.isfinite(denominator) or denominator <= 0:
        return 0.0

    ratio = float(to_amount(part)) / denominator * 100
    if not math.isfinite(ratio):
        return 0.0
    return max(0.0, min(100.0, ratio))


def share_breakdown(snapshot: MetricsSnapshot) -> ShareBreakdown:
    """Tax, expense and profit as shares of revenue."""
    return ShareBreakdown(
        tax_share=safe_percent(snapshot.collected_tax, snapshot.revenue),
        expense_share=safe_percent(snapshot.expense_total, snapshot.revenue),
        profit_share=safe_percent(snapshot.net, snapshot.revenue),
    )
