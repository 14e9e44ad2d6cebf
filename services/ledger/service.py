"""Ledger of invoices and expenses.

Owns the two collections the billing core works on, applies user actions to
them (save, status change, delete, add, remove) and optionally mirrors them to
a JSON file. Collections are kept newest first.

The calculation and metrics functions never hold on to these collections;
they receive copies on every call.
"""

import logging
import threading
from datetime import UTC, date, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from pipeline.analytics.dashboard import Dashboard, build_dashboard
from pipeline.analytics.metrics import MetricsPolicy, summarize
from services.billing.aggregator import finalize_invoice, set_status
from services.billing.numbering import (
    InvoiceNumberer,
    MonotonicNumberer,
    create_numberer,
    parse_sequence,
)
from services.billing.schema import (
    Expense,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    MetricsSnapshot,
)
from services.shared.config import Settings

logger = logging.getLogger(__name__)


class LedgerError(KeyError):
    """Raised when an invoice or expense id is not in the ledger."""


class LedgerSnapshot(BaseModel):
    """On-disk layout of the ledger file."""

    invoices: list[Invoice] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    invoice_counter: int = 0


class LedgerService:
    """In-process store for invoices and expenses.

    Mutations are serialised with a lock so a single writer is active at a
    time (request handlers may run on a thread pool).
    """

    def __init__(self, settings: Settings, numberer: InvoiceNumberer | None = None) -> None:
        """Initialize ledger, loading the ledger file when configured.

        Args:
            settings: Application settings
            numberer: Numbering strategy (defaults to the configured one)
        """
        self.settings = settings
        self.numberer = numberer or create_numberer(settings)
        self._path: Path | None = settings.ledger_path
        self._lock = threading.Lock()
        self._invoices: list[Invoice] = []
        self._expenses: list[Expense] = []

        if self._path is not None and self._path.exists():
            self._load(self._path)

    # Persistence

    def _load(self, path: Path) -> None:
        snapshot = LedgerSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
        self._invoices = list(snapshot.invoices)
        self._expenses = list(snapshot.expenses)
        if isinstance(self.numberer, MonotonicNumberer):
            # Files written under collection_size carry counter 0
            issued = [parse_sequence(inv.invoice_number) for inv in self._invoices]
            self.numberer.counter = max(
                self.numberer.counter,
                snapshot.invoice_counter,
                len(self._invoices),
                *(count for count in issued if count is not None),
            )
        logger.info(
            f"Loaded ledger from {path}: {len(self._invoices)} invoices, "
            f"{len(self._expenses)} expenses"
        )

    def _persist(self) -> None:
        if self._path is None:
            return
        counter = self.numberer.counter if isinstance(self.numberer, MonotonicNumberer) else 0
        snapshot = LedgerSnapshot(
            invoices=self._invoices,
            expenses=self._expenses,
            invoice_counter=counter,
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")

    def _invoice_index(self, invoice_id: str) -> int:
        for index, invoice in enumerate(self._invoices):
            if invoice.id == invoice_id:
                return index
        raise LedgerError(f"Invoice not found: {invoice_id}")

    def _expense_index(self, expense_id: str) -> int:
        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return index
        raise LedgerError(f"Expense not found: {expense_id}")

    # Invoices

    def save_invoice(self, draft: InvoiceDraft, created_at: datetime | None = None) -> Invoice:
        """Finalize a draft and store it as the newest invoice.

        Args:
            draft: Invoice form state
            created_at: Creation timestamp (defaults to now, UTC)

        Returns:
            The stored Invoice
        """
        created_at = created_at or datetime.now(UTC)
        with self._lock:
            number = self.numberer.next_number(len(self._invoices), created_at)
            invoice = finalize_invoice(draft, number, created_at)
            self._invoices.insert(0, invoice)
            self._persist()

        logger.info(f"Saved invoice {invoice.invoice_number} ({invoice.id}), total {invoice.total}")
        return invoice

    def list_invoices(self) -> list[Invoice]:
        with self._lock:
            return list(self._invoices)

    def get_invoice(self, invoice_id: str) -> Invoice:
        """Look up an invoice.

        Raises:
            LedgerError: If the id is unknown
        """
        with self._lock:
            return self._invoices[self._invoice_index(invoice_id)]

    def set_invoice_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        """Change an invoice's status (any status to any status).

        Raises:
            LedgerError: If the id is unknown
        """
        with self._lock:
            index = self._invoice_index(invoice_id)
            updated = set_status(self._invoices[index], status)
            self._invoices[index] = updated
            self._persist()

        logger.info(f"Invoice {updated.invoice_number} status set to {status}")
        return updated

    def delete_invoice(self, invoice_id: str) -> bool:
        """Remove an invoice.

        Returns:
            True if an invoice was removed, False if the id was unknown
        """
        with self._lock:
            try:
                index = self._invoice_index(invoice_id)
            except LedgerError:
                return False
            removed = self._invoices.pop(index)
            self._persist()

        logger.info(f"Deleted invoice {removed.invoice_number} ({removed.id})")
        return True

    # Expenses

    def add_expense(self, expense: Expense) -> Expense:
        """Store an expense as the newest entry."""
        with self._lock:
            self._expenses.insert(0, expense)
            self._persist()

        logger.info(f"Recorded {expense.category} expense {expense.id}: {expense.amount}")
        return expense

    def list_expenses(self) -> list[Expense]:
        with self._lock:
            return list(self._expenses)

    def get_expense(self, expense_id: str) -> Expense:
        """Look up an expense.

        Raises:
            LedgerError: If the id is unknown
        """
        with self._lock:
            return self._expenses[self._expense_index(expense_id)]

    def attach_receipt(self, expense_id: str, reference: str | None) -> Expense:
        """Set (or clear) the receipt reference of an expense.

        Raises:
            LedgerError: If the id is unknown
        """
        with self._lock:
            index = self._expense_index(expense_id)
            updated = self._expenses[index].model_copy(update={"receipt": reference})
            self._expenses[index] = updated
            self._persist()
        return updated

    def remove_expense(self, expense_id: str) -> bool:
        """Remove an expense.

        Returns:
            True if an expense was removed, False if the id was unknown
        """
        with self._lock:
            try:
                index = self._expense_index(expense_id)
            except LedgerError:
                return False
            self._expenses.pop(index)
            self._persist()

        logger.info(f"Removed expense {expense_id}")
        return True

    # Derived views

    def metrics(self, policy: MetricsPolicy | None = None) -> MetricsSnapshot:
        return summarize(self.list_invoices(), self.list_expenses(), policy)

    def dashboard(
        self,
        policy: MetricsPolicy | None = None,
        months: int | None = None,
        as_of: date | None = None,
    ) -> Dashboard:
        return build_dashboard(
            self.list_invoices(),
            self.list_expenses(),
            policy=policy,
            months=months or self.settings.dashboard_months,
            as_of=as_of,
        )
