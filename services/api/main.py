"""FastAPI application for the billing engine.

Serves the billing core to UI and reporting clients:
- Health and readiness checks
- Live line-item and invoice previews
- Invoice and expense ledger operations
- Receipt uploads to object storage
- Dashboard metrics as unformatted numbers
- Prometheus metrics for monitoring

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import time
from datetime import UTC, date, datetime

from fastapi import FastAPI, File, HTTPException, Query, Request, Response, UploadFile, status
from pydantic import BaseModel, Field

from pipeline.analytics.dashboard import Dashboard
from services.api import metrics
from services.billing.aggregator import aggregate
from services.billing.calculator import compute_line
from services.billing.coercion import ZERO
from services.billing.schema import (
    Amount,
    CalendarDate,
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    InvoiceTotals,
    LineComputation,
    LineItem,
    TaxMode,
)
from services.ledger.service import LedgerError, LedgerService
from services.shared.config import get_settings
from services.storage.service import ReceiptStorage

settings = get_settings()
app = FastAPI(
    title="Billing Engine",
    description="Invoice tax computation, expense ledger and revenue metrics API",
    version=settings.service_version,
)

ledger = LedgerService(settings)
receipt_storage = ReceiptStorage(settings)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool


class LinePreviewRequest(BaseModel):
    """Line item to preview under a tax mode."""

    item: LineItem
    tax_mode: TaxMode = TaxMode.SPLIT


class StatusUpdate(BaseModel):
    """New status for an invoice."""

    status: InvoiceStatus


class ExpenseCreate(BaseModel):
    """Expense form fields (id is assigned by the server)."""

    date: CalendarDate = Field(default_factory=lambda: datetime.now(UTC).date())
    category: ExpenseCategory = ExpenseCategory.UTILITIES
    description: str = ""
    amount: Amount = ZERO


def _not_found(error: LedgerError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.args[0])


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint."""
    return ReadinessResponse(ready=True)


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post("/api/v1/line-items/preview", response_model=LineComputation, tags=["Preview"])
def preview_line_item(request: LinePreviewRequest) -> LineComputation:
    """Compute one line's base, discount, taxable amount, tax components and total.

    Called on every edit while a draft is open. Non-numeric fields count as 0.
    """
    return compute_line(request.item, request.tax_mode)


@app.post("/api/v1/invoices/preview", response_model=InvoiceTotals, tags=["Preview"])
def preview_invoice(draft: InvoiceDraft) -> InvoiceTotals:
    """Aggregate a draft's totals without saving it."""
    return aggregate(draft.items, draft.tax_mode)


@app.post(
    "/api/v1/invoices",
    response_model=Invoice,
    status_code=status.HTTP_201_CREATED,
    tags=["Invoices"],
)
def create_invoice(draft: InvoiceDraft) -> Invoice:
    """Finalize a draft into a stored invoice.

    Totals are computed once here and stored with the invoice; later reads
    return the stored snapshot.
    """
    invoice = ledger.save_invoice(draft)
    metrics.invoices_saved_total.labels(tax_mode=invoice.tax_mode.value).inc()
    return invoice


@app.get("/api/v1/invoices", response_model=list[Invoice], tags=["Invoices"])
def list_invoices() -> list[Invoice]:
    """List invoices, newest first."""
    return ledger.list_invoices()


@app.get("/api/v1/invoices/{invoice_id}", response_model=Invoice, tags=["Invoices"])
def get_invoice(invoice_id: str) -> Invoice:
    """Fetch a single invoice."""
    try:
        return ledger.get_invoice(invoice_id)
    except LedgerError as e:
        raise _not_found(e) from e


@app.patch("/api/v1/invoices/{invoice_id}/status", response_model=Invoice, tags=["Invoices"])
def update_invoice_status(invoice_id: str, update: StatusUpdate) -> Invoice:
    """Set an invoice's status. Any status may follow any other."""
    try:
        invoice = ledger.set_invoice_status(invoice_id, update.status)
    except LedgerError as e:
        raise _not_found(e) from e

    metrics.invoice_status_changes_total.labels(status=update.status.value).inc()
    return invoice


@app.delete(
    "/api/v1/invoices/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Invoices"],
)
def delete_invoice(invoice_id: str) -> Response:
    """Delete an invoice."""
    if not ledger.delete_invoice(invoice_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Invoice not found: {invoice_id}"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post(
    "/api/v1/expenses",
    response_model=Expense,
    status_code=status.HTTP_201_CREATED,
    tags=["Expenses"],
)
def create_expense(payload: ExpenseCreate) -> Expense:
    """Record an expense."""
    expense = ledger.add_expense(Expense(**payload.model_dump()))
    metrics.expenses_recorded_total.labels(category=expense.category.value).inc()
    return expense


@app.get("/api/v1/expenses", response_model=list[Expense], tags=["Expenses"])
def list_expenses() -> list[Expense]:
    """List expenses, newest first."""
    return ledger.list_expenses()


@app.delete(
    "/api/v1/expenses/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Expenses"],
)
def delete_expense(expense_id: str) -> Response:
    """Remove an expense and, when storage is enabled, its receipt."""
    try:
        expense = ledger.get_expense(expense_id)
    except LedgerError as e:
        raise _not_found(e) from e

    ledger.remove_expense(expense_id)
    if expense.receipt and receipt_storage.is_available():
        # Orphaned receipts are tolerated; the expense is already gone
        receipt_storage.delete_receipt(expense.receipt)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/api/v1/expenses/{expense_id}/receipt", response_model=Expense, tags=["Expenses"])
async def upload_receipt(
    expense_id: str,
    file: UploadFile = File(..., description="Receipt file (image or PDF)"),  # noqa: B008
) -> Expense:
    """Attach a receipt file to an expense.

    ## Error Handling

    - Returns 404 if the expense does not exist
    - Returns 503 if receipt storage is not configured
    - Returns 400 if the file is empty or has no name
    - Returns 502 if the storage backend rejects the upload
    """
    try:
        ledger.get_expense(expense_id)
    except LedgerError as e:
        raise _not_found(e) from e

    if not receipt_storage.is_available():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Receipt storage is not enabled",
        )

    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No filename provided")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")

    metrics.receipt_upload_size_bytes.observe(len(content))
    result = receipt_storage.store_receipt(
        expense_id=expense_id,
        filename=file.filename,
        data=content,
        content_type=file.content_type,
    )

    if not result.success:
        metrics.receipt_uploads_total.labels(status="failed").inc()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Receipt upload failed: {result.error}",
        )

    metrics.receipt_uploads_total.labels(status="success").inc()
    try:
        return ledger.attach_receipt(expense_id, result.reference)
    except LedgerError as e:
        raise _not_found(e) from e


@app.get("/api/v1/dashboard", response_model=Dashboard, tags=["Dashboard"])
def get_dashboard(
    months: int | None = Query(
        None, ge=1, le=120, description="Trailing window for the monthly series"
    ),
    as_of: date | None = Query(None, description="Window end date (defaults to today, UTC)"),
) -> Dashboard:
    """Summary metrics, revenue shares, monthly series and expense split."""
    return ledger.dashboard(months=months, as_of=as_of)
