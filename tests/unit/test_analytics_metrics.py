"""Unit tests for summary metrics.

Tests cover:
- Revenue and collected tax status policies
- Expense totals and net result
- Category split
- Clamped percentages and revenue shares
"""

from decimal import Decimal

import pytest

from pipeline.analytics.metrics import (
    DEFAULT_POLICY,
    MetricsPolicy,
    safe_percent,
    share_breakdown,
    split_by_category,
    summarize,
)
from services.billing.schema import (
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceStatus,
    MetricsSnapshot,
)


@pytest.fixture
def invoices() -> list[Invoice]:
    """One invoice per status."""
    return [
        Invoice(status=InvoiceStatus.DRAFT, total=100, tax_total=18),
        Invoice(status=InvoiceStatus.SENT, total=300, tax_total=54),
        Invoice(status=InvoiceStatus.PAID, total=200, tax_total=36),
        Invoice(status=InvoiceStatus.OVERDUE, total=400, tax_total=72),
    ]


def test_summarize_draft_and_paid_example() -> None:
    """Draft is excluded from revenue but its tax is counted."""
    invoices = [
        Invoice(status=InvoiceStatus.DRAFT, total=100, tax_total=18),
        Invoice(status=InvoiceStatus.PAID, total=200, tax_total=36),
    ]
    expenses = [Expense(amount=50)]

    snapshot = summarize(invoices, expenses)

    assert snapshot.revenue == Decimal(200)
    assert snapshot.collected_tax == Decimal(54)
    assert snapshot.expense_total == Decimal(50)
    assert snapshot.net == Decimal(150)


def test_revenue_counts_only_paid_and_sent(invoices: list[Invoice]) -> None:
    """Overdue and Draft never add to revenue."""
    snapshot = summarize(invoices, [])

    assert snapshot.revenue == Decimal(500)
    assert snapshot.collected_tax == Decimal(180)


def test_summarize_empty_collections() -> None:
    """No records, all zeros."""
    assert summarize([], []) == MetricsSnapshot()


def test_net_can_be_negative() -> None:
    """Expenses above revenue give a negative net."""
    snapshot = summarize(
        [Invoice(status=InvoiceStatus.PAID, total=100)],
        [Expense(amount=250)],
    )

    assert snapshot.net == Decimal(-150)


def test_default_policy_keeps_the_asymmetry() -> None:
    """Revenue statuses are a strict subset of collected tax statuses."""
    assert DEFAULT_POLICY.revenue_statuses == {InvoiceStatus.PAID, InvoiceStatus.SENT}
    assert DEFAULT_POLICY.collected_tax_statuses == set(InvoiceStatus)
    assert DEFAULT_POLICY.revenue_statuses < DEFAULT_POLICY.collected_tax_statuses


def test_custom_policy_changes_filters(invoices: list[Invoice]) -> None:
    """Policies can align tax with revenue or count only paid invoices."""
    policy = MetricsPolicy(
        revenue_statuses=frozenset({InvoiceStatus.PAID}),
        collected_tax_statuses=frozenset({InvoiceStatus.PAID}),
    )

    snapshot = summarize(invoices, [], policy)

    assert snapshot.revenue == Decimal(200)
    assert snapshot.collected_tax == Decimal(36)


def test_split_by_category_example() -> None:
    """Amounts are summed per category."""
    expenses = [
        {"category": "Rent", "amount": 100},
        {"category": "Rent", "amount": 50},
        {"category": "Travel", "amount": 30},
    ]

    assert split_by_category(expenses) == {"Rent": Decimal(150), "Travel": Decimal(30)}


def test_split_by_category_with_models() -> None:
    """Expense models are keyed by category name."""
    expenses = [
        Expense(category=ExpenseCategory.SOFTWARE, amount="49.99"),
        Expense(category=ExpenseCategory.SOFTWARE, amount="10.01"),
        Expense(category=ExpenseCategory.UTILITIES, amount=120),
    ]

    split = split_by_category(expenses)

    assert split == {"Software": Decimal(60), "Utilities": Decimal(120)}
    assert all(type(key) is str for key in split)


def test_split_by_category_empty() -> None:
    assert split_by_category([]) == {}


@pytest.mark.parametrize(
    ("part", "total", "expected"),
    [
        (50, 200, 25.0),
        (200, 200, 100.0),
        (300, 200, 100.0),
        (-50, 200, 0.0),
        (10, 0, 0.0),
        (10, -100, 0.0),
        (Decimal("54"), Decimal("200"), 27.0),
        ("abc", 100, 0.0),
        (10, "abc", 0.0),
        (float("nan"), 100, 0.0),
        (10, float("inf"), 0.0),
        (Decimal("1E+400"), 1, 0.0),
    ],
)
def test_safe_percent(part: object, total: object, expected: float) -> None:
    """Ratios are clamped and degenerate denominators give 0."""
    assert safe_percent(part, total) == pytest.approx(expected)


@pytest.mark.parametrize("part", [-1e9, -1, 0, 0.5, 1, 99, 1e9])
@pytest.mark.parametrize("total", [-10, 0, 0.001, 1, 100, 1e12])
def test_safe_percent_is_bounded(part: float, total: float) -> None:
    """Result always lies in [0, 100]."""
    assert 0.0 <= safe_percent(part, total) <= 100.0


@pytest.mark.parametrize("part", [-5, 0, 5, 1e6])
def test_safe_percent_zero_total(part: float) -> None:
    assert safe_percent(part, 0) == 0.0


def test_share_breakdown() -> None:
    """Shares are percentages of revenue."""
    snapshot = MetricsSnapshot(
        revenue=Decimal(200),
        collected_tax=Decimal(54),
        expense_total=Decimal(50),
        net=Decimal(150),
    )

    shares = share_breakdown(snapshot)

    assert shares.tax_share == pytest.approx(27.0)
    assert shares.expense_share == pytest.approx(25.0)
    assert shares.profit_share == pytest.approx(75.0)


def test_share_breakdown_negative_net_is_clamped() -> None:
    """A loss shows as 0% profit and expenses cap at 100%."""
    snapshot = MetricsSnapshot(
        revenue=Decimal(100),
        collected_tax=Decimal(18),
        expense_total=Decimal(250),
        net=Decimal(-150),
    )

    shares = share_breakdown(snapshot)

    assert shares.profit_share == 0.0
    assert shares.expense_share == 100.0


def test_share_breakdown_without_revenue() -> None:
    """No revenue means every share is 0."""
    shares = share_breakdown(MetricsSnapshot(collected_tax=Decimal(10), expense_total=Decimal(5)))

    assert (shares.tax_share, shares.expense_share, shares.profit_share) == (0.0, 0.0, 0.0)
