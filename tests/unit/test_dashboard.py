"""Unit tests for dashboard assembly."""

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pipeline.analytics.dashboard import build_dashboard
from pipeline.analytics.metrics import MetricsPolicy
from services.billing.schema import Expense, ExpenseCategory, Invoice, InvoiceStatus


@pytest.fixture
def invoices() -> list[Invoice]:
    return [
        Invoice(
            status=InvoiceStatus.PAID,
            created_at=datetime(2025, 5, 3, tzinfo=UTC),
            total=1180,
            tax_total=180,
        ),
        Invoice(
            status=InvoiceStatus.DRAFT,
            created_at=datetime(2025, 6, 1, tzinfo=UTC),
            total=590,
            tax_total=90,
        ),
        Invoice(
            status=InvoiceStatus.SENT,
            created_at=datetime(2024, 1, 9, tzinfo=UTC),
            total=100,
            tax_total=0,
        ),
    ]


@pytest.fixture
def expenses() -> list[Expense]:
    return [
        Expense(date=date(2025, 5, 20), category=ExpenseCategory.RENT, amount=400),
        Expense(date=date(2025, 4, 2), category=ExpenseCategory.TRAVEL, amount=80),
    ]


def test_dashboard_summary_and_shares(invoices: list[Invoice], expenses: list[Expense]) -> None:
    """Summary covers the full collections regardless of the window."""
    dashboard = build_dashboard(invoices, expenses, months=3, as_of=date(2025, 6, 30))

    assert dashboard.summary.revenue == Decimal(1280)
    assert dashboard.summary.collected_tax == Decimal(270)
    assert dashboard.summary.expense_total == Decimal(480)
    assert dashboard.summary.net == Decimal(800)
    assert dashboard.shares.expense_share == pytest.approx(37.5)
    assert dashboard.expenses_by_category == {"Rent": Decimal(400), "Travel": Decimal(80)}


def test_dashboard_monthly_series_is_windowed(
    invoices: list[Invoice], expenses: list[Expense]
) -> None:
    """Monthly series keeps only the trailing window and charts drafts too."""
    dashboard = build_dashboard(invoices, expenses, months=3, as_of=date(2025, 6, 30))

    assert dashboard.months == 3
    assert dashboard.as_of == date(2025, 6, 30)
    assert [(p.period, p.revenue, p.expenses) for p in dashboard.monthly] == [
        ("2025-04", Decimal(0), Decimal(80)),
        ("2025-05", Decimal(1180), Decimal(400)),
        ("2025-06", Decimal(590), Decimal(0)),
    ]


def test_dashboard_revenue_series_filter(invoices: list[Invoice], expenses: list[Expense]) -> None:
    """With filter_revenue_series the chart follows revenue statuses."""
    policy = MetricsPolicy(filter_revenue_series=True)

    dashboard = build_dashboard(invoices, expenses, policy, months=3, as_of=date(2025, 6, 30))

    june = [p for p in dashboard.monthly if p.period == "2025-06"]
    assert june == []


def test_dashboard_empty_collections() -> None:
    """Empty ledger gives zeros and empty series."""
    dashboard = build_dashboard([], [], as_of=date(2025, 1, 1))

    assert dashboard.summary.revenue == 0
    assert dashboard.monthly == []
    assert dashboard.expenses_by_category == {}
    assert dashboard.shares.profit_share == 0.0


class _LateEveningUtc(datetime):
    """Clock fixed at 2025-03-31 23:30 UTC, already April east of UTC."""

    @classmethod
    def now(cls, tz=None):  # type: ignore[no-untyped-def]
        moment = datetime(2025, 3, 31, 23, 30, tzinfo=UTC)
        return moment.astimezone(tz or timezone(timedelta(hours=5)))


def test_dashboard_default_as_of_is_utc_date(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without as_of the window closes on the current UTC date."""
    monkeypatch.setattr("pipeline.analytics.dashboard.datetime", _LateEveningUtc)
    invoices = [Invoice(created_at=datetime(2025, 3, 31, 22, 0, tzinfo=UTC), total=50)]

    dashboard = build_dashboard(invoices, [], months=1)

    assert dashboard.as_of == date(2025, 3, 31)
    assert [p.period for p in dashboard.monthly] == ["2025-03"]
