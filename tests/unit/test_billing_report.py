"""Unit tests for the billing report script.

Tests cover:
- Plain-text rendering of summary, shares, monthly series and categories
- Empty dashboards
- Command-line entry point against a ledger file
"""

import sys
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from pipeline.analytics.dashboard import Dashboard, build_dashboard
from scripts.billing_report import main, render_report
from services.billing.schema import (
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    LineItem,
)
from services.ledger.service import LedgerService
from services.shared.config import Settings


@pytest.fixture
def dashboard() -> Dashboard:
    invoices = [
        Invoice(
            status=InvoiceStatus.PAID,
            created_at=datetime(2025, 5, 3, tzinfo=UTC),
            total=Decimal("1180"),
            tax_total=Decimal("180"),
        )
    ]
    expenses = [
        Expense(date=date(2025, 5, 20), category=ExpenseCategory.RENT, amount="1234.5"),
        Expense(date=date(2025, 4, 2), category=ExpenseCategory.TRAVEL, amount=80),
    ]
    return build_dashboard(invoices, expenses, months=3, as_of=date(2025, 6, 30))


def test_render_report_header_and_summary(dashboard: Dashboard) -> None:
    report = render_report(dashboard)

    assert "BILLING REPORT (last 3 months to 2025-06-30)" in report
    assert "1,180.00" in report
    assert "180.00" in report
    assert "1,314.50" in report
    assert "-134.50" in report


def test_render_report_shares(dashboard: Dashboard) -> None:
    """Expense share is clamped at 100% and a loss shows 0% profit."""
    report = render_report(dashboard)

    assert "15.3%" in report
    assert "100.0%" in report
    assert "0.0%" in report


def test_render_report_monthly_rows(dashboard: Dashboard) -> None:
    lines = render_report(dashboard).splitlines()

    april = next(line for line in lines if line.startswith("2025-04"))
    may = next(line for line in lines if line.startswith("2025-05"))
    assert april.split() == ["2025-04", "0.00", "80.00"]
    assert may.split() == ["2025-05", "1,180.00", "1,234.50"]


def test_render_report_categories_sorted(dashboard: Dashboard) -> None:
    lines = render_report(dashboard).splitlines()
    start = lines.index("Expenses by category")

    categories = [line.split()[0] for line in lines[start + 2 :]]

    assert categories == ["Rent", "Travel"]


def test_render_report_empty() -> None:
    report = render_report(build_dashboard([], [], as_of=date(2025, 1, 1)))

    assert "(no activity in window)" in report
    assert "(no expenses)" in report


def test_main_prints_report(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """The script reads the ledger file written by the service."""
    path = tmp_path / "ledger.json"
    ledger = LedgerService(Settings(ledger_path=path))
    ledger.save_invoice(
        InvoiceDraft(
            status=InvoiceStatus.SENT,
            items=[LineItem(quantity=1, unit_price=1000, tax_rate_percent=18)],
        ),
        created_at=datetime(2025, 2, 14, tzinfo=UTC),
    )
    monkeypatch.setattr(
        sys,
        "argv",
        ["billing_report.py", "--ledger", str(path), "--months", "12", "--as-of", "2025-03-31"],
    )

    main()

    out = capsys.readouterr().out
    assert "BILLING REPORT (last 12 months to 2025-03-31)" in out
    assert "2025-02" in out
    assert "1,180.00" in out


def test_main_missing_ledger(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sys, "argv", ["billing_report.py", "--ledger", str(tmp_path / "absent.json")]
    )

    with pytest.raises(SystemExit):
        main()
