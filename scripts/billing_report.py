#!/usr/bin/env python3
"""Print the billing dashboard for a ledger file.

Shows summary metrics, revenue shares, the monthly revenue/expense series
and the expense split by category. Amounts are printed unformatted, with
two decimals.

Usage:
    python scripts/billing_report.py --ledger data/ledger.json
    python scripts/billing_report.py --ledger data/ledger.json --months 12 --as-of 2025-06-30
"""

import argparse
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

from pipeline.analytics.dashboard import Dashboard
from services.ledger.service import LedgerService
from services.shared.config import Settings

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _amount(value: Decimal) -> str:
    return f"{value:,.2f}"


def render_report(dashboard: Dashboard) -> str:
    """Render a dashboard as plain text.

    Args:
        dashboard: Dashboard payload

    Returns:
        Multi-line report
    """
    summary = dashboard.summary
    shares = dashboard.shares
    lines = [
        "=" * 60,
        f"BILLING REPORT (last {dashboard.months} months to {dashboard.as_of.isoformat()})",
        "=" * 60,
        f"Revenue:        {_amount(summary.revenue):>18}",
        f"Collected tax:  {_amount(summary.collected_tax):>18}",
        f"Expenses:       {_amount(summary.expense_total):>18}",
        f"Net:            {_amount(summary.net):>18}",
        "",
        f"Tax share:      {shares.tax_share:>17.1f}%",
        f"Expense share:  {shares.expense_share:>17.1f}%",
        f"Profit share:   {shares.profit_share:>17.1f}%",
        "",
        f"{'Month':<10}{'Revenue':>18}{'Expenses':>18}",
        "-" * 46,
    ]

    if not dashboard.monthly:
        lines.append("(no activity in window)")
    for point in dashboard.monthly:
        lines.append(
            f"{point.period:<10}{_amount(point.revenue):>18}{_amount(point.expenses):>18}"
        )

    lines.extend(["", "Expenses by category", "-" * 46])
    if not dashboard.expenses_by_category:
        lines.append("(no expenses)")
    for category, amount in sorted(dashboard.expenses_by_category.items()):
        lines.append(f"{category:<28}{_amount(amount):>18}")

    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the billing dashboard for a ledger file")
    parser.add_argument(
        "--ledger",
        type=Path,
        required=True,
        help="Ledger JSON file written by the billing API",
    )
    parser.add_argument(
        "--months",
        type=int,
        default=None,
        help="Trailing window in months (default: APP_DASHBOARD_MONTHS or 6)",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Window end date, YYYY-MM-DD (default: today, UTC)",
    )
    args = parser.parse_args()

    if not args.ledger.exists():
        parser.error(f"Ledger file not found: {args.ledger}")

    ledger = LedgerService(Settings(ledger_path=args.ledger))
    dashboard = ledger.dashboard(months=args.months, as_of=args.as_of)
    print(render_report(dashboard))


if __name__ == "__main__":
    main()
