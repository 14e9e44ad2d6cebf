"""Receipt attachment storage on S3-compatible object storage (MinIO).

Expense receipts are uploaded here and the expense keeps only the returned
reference (``bucket/receipts/<expense_id>/<filename>``). The billing core
never reads the reference.

Based on MinIO Python SDK:
https://min.io/docs/minio/linux/developers/python/API.html
"""

import io
import logging
import mimetypes
from datetime import timedelta
from pathlib import PurePosixPath

from minio import Minio
from minio.error import S3Error
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from services.shared.config import Settings

logger = logging.getLogger(__name__)

RECEIPT_PREFIX = "receipts"


class ReceiptResult(BaseModel):
    """Result of a receipt storage operation.

    Attributes:
        success: Whether operation succeeded
        reference: ``bucket/object`` reference to keep on the expense
        url: Presigned download URL (receipt_url only)
        size: Uploaded size in bytes (store_receipt only)
        error: Error message if operation failed
    """

    success: bool
    reference: str | None = None
    url: str | None = None
    size: int | None = None
    error: str | None = None


def receipt_object_name(expense_id: str, filename: str) -> str:
    """Object name for a receipt; directory parts of filename are dropped."""
    name = PurePosixPath(filename.replace("\\", "/")).name or "receipt"
    return f"{RECEIPT_PREFIX}/{expense_id}/{name}"


def split_reference(reference: str) -> tuple[str, str]:
    """Split ``bucket/object/name`` into (bucket, object name).

    Raises:
        ValueError: If the reference has no object part
    """
    bucket, _, object_name = reference.partition("/")
    if not bucket or not object_name:
        raise ValueError(f"Invalid receipt reference: {reference!r}")
    return bucket, object_name


class ReceiptStorage:
    """Stores expense receipt files in a MinIO bucket."""

    def __init__(self, settings: Settings) -> None:
        """Initialize receipt storage.

        Args:
            settings: Application settings with storage configuration
        """
        self.settings = settings
        self._client: Minio | None = None
        self._bucket_ready = False

    def _get_client(self) -> Minio:
        """Get or create MinIO client (lazy initialization).

        Raises:
            ValueError: If storage credentials are not configured
        """
        if self._client is None:
            if not (self.settings.storage_access_key and self.settings.storage_secret_key):
                raise ValueError(
                    "Storage credentials not configured. Set APP_STORAGE_ACCESS_KEY "
                    "and APP_STORAGE_SECRET_KEY environment variables."
                )

            self._client = Minio(
                endpoint=self.settings.storage_endpoint,
                access_key=self.settings.storage_access_key,
                secret_key=self.settings.storage_secret_key,
                secure=self.settings.storage_secure,
            )
            logger.info(f"MinIO client initialized for endpoint: {self.settings.storage_endpoint}")

        return self._client

    def is_available(self) -> bool:
        """True if storage is enabled and credentials are set."""
        if not self.settings.storage_enabled:
            return False
        return bool(self.settings.storage_access_key and self.settings.storage_secret_key)

    def _ensure_bucket(self, client: Minio) -> None:
        if self._bucket_ready:
            return
        bucket = self.settings.storage_bucket
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
            logger.info(f"Created bucket: {bucket}")
        self._bucket_ready = True

    @retry(
        retry=retry_if_exception_type(S3Error),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=10),
        reraise=True,
    )
    def _put(self, object_name: str, data: bytes, content_type: str) -> None:
        client = self._get_client()
        self._ensure_bucket(client)
        client.put_object(
            bucket_name=self.settings.storage_bucket,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    def store_receipt(
        self,
        expense_id: str,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> ReceiptResult:
        """Upload a receipt for an expense.

        Args:
            expense_id: Owning expense id
            filename: Original file name (used for the object name)
            data: File content
            content_type: MIME type (guessed from filename if not provided)

        Returns:
            ReceiptResult with the reference to store on the expense
        """
        object_name = receipt_object_name(expense_id, filename)
        content_type = (
            content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        )

        try:
            self._put(object_name, data, content_type)
        except S3Error as e:
            logger.error(f"S3 error uploading receipt {object_name}: {e}")
            return ReceiptResult(success=False, error=f"S3 error: {e.code} - {e.message}")
        except Exception as e:
            logger.error(f"Error uploading receipt {object_name}: {e}")
            return ReceiptResult(success=False, error=str(e))

        logger.info(f"Stored receipt {object_name} ({len(data)} bytes)")
        return ReceiptResult(
            success=True,
            reference=f"{self.settings.storage_bucket}/{object_name}",
            size=len(data),
        )

    def receipt_url(self, reference: str, expires_seconds: int = 3600) -> ReceiptResult:
        """Generate a presigned download URL for a stored receipt."""
        try:
            bucket, object_name = split_reference(reference)
            url = self._get_client().presigned_get_object(
                bucket_name=bucket,
                object_name=object_name,
                expires=timedelta(seconds=expires_seconds),
            )
        except S3Error as e:
            logger.error(f"S3 error generating URL for {reference}: {e}")
            return ReceiptResult(success=False, error=f"S3 error: {e.code} - {e.message}")
        except Exception as e:
            logger.error(f"Error generating URL for {reference}: {e}")
            return ReceiptResult(success=False, error=str(e))

        return ReceiptResult(success=True, reference=reference, url=url)

    def delete_receipt(self, reference: str) -> ReceiptResult:
        """Remove a stored receipt."""
        try:
            bucket, object_name = split_reference(reference)
            self._get_client().remove_object(bucket_name=bucket, object_name=object_name)
        except S3Error as e:
            logger.error(f"S3 error deleting {reference}: {e}")
            return ReceiptResult(success=False, error=f"S3 error: {e.code} - {e.message}")
        except Exception as e:
            logger.error(f"Error deleting {reference}: {e}")
            return ReceiptResult(success=False, error=str(e))

        logger.info(f"Deleted receipt {reference}")
        return ReceiptResult(success=True, reference=reference)
