"""Prometheus metrics for the billing API.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Invoice and expense activity
- Receipt uploads

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0),
)

# Billing activity
invoices_saved_total = Counter(
    "billing_invoices_saved_total",
    "Total invoices finalized",
    ["tax_mode"],  # SPLIT, SINGLE
)

invoice_status_changes_total = Counter(
    "billing_invoice_status_changes_total",
    "Total invoice status changes",
    ["status"],
)

expenses_recorded_total = Counter(
    "billing_expenses_recorded_total",
    "Total expenses recorded",
    ["category"],
)

receipt_uploads_total = Counter(
    "billing_receipt_uploads_total",
    "Total receipt uploads",
    ["status"],  # success, failed
)

receipt_upload_size_bytes = Histogram(
    "billing_receipt_upload_size_bytes",
    "Receipt upload size in bytes",
    buckets=(1024, 10240, 102400, 1048576, 10485760),  # 1KB to 10MB
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
