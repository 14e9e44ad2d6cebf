"""Shared configuration management for the billing engine.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_INVOICE_NUMBERING=collection_size
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="billing-engine",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Invoice numbering
    invoice_number_prefix: str = Field(
        default="INV",
        description="Prefix of human-readable invoice numbers (PREFIX-YYYY-NNNN)",
    )
    invoice_numbering: Literal["monotonic", "collection_size"] = Field(
        default="monotonic",
        description=(
            "Sequence strategy: monotonic (counter never decremented), "
            "collection_size (count of stored invoices + 1, numbers reused after deletion)"
        ),
    )

    # Dashboard
    dashboard_months: int = Field(
        default=6,
        ge=1,
        le=120,
        description="Default trailing window (in months) for dashboard series",
    )

    # Ledger persistence (JSON file, in-memory when unset)
    ledger_path: Path | None = Field(
        default=None,
        description="JSON file holding invoices, expenses and the sequence counter",
    )

    # Receipt storage (S3-compatible object storage)
    storage_enabled: bool = Field(
        default=False,
        description="Enable receipt storage in S3-compatible storage (MinIO)",
    )
    storage_endpoint: str = Field(
        default="localhost:9000",
        description="S3-compatible storage endpoint (host:port)",
    )
    storage_access_key: str = Field(
        default="",
        description="Storage access key (use env var APP_STORAGE_ACCESS_KEY)",
    )
    storage_secret_key: str = Field(
        default="",
        description="Storage secret key (use env var APP_STORAGE_SECRET_KEY)",
    )
    storage_bucket: str = Field(
        default="receipts",
        description="Bucket holding expense receipt attachments",
    )
    storage_secure: bool = Field(
        default=False,
        description="Use HTTPS for storage connections",
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
