"""Human-readable invoice numbering strategies.

Invoice numbers look like ``INV-2025-0007``. Two strategies exist:

- ``collection_size``: count = number of stored invoices + 1. A number can be
  issued again after an invoice is deleted.
- ``monotonic``: an explicit counter starting at 0 that is incremented on each
  issued number and never decremented. The ledger persists its value.

Selection follows the same registry/factory shape as other configurable
components: ``Settings.invoice_numbering`` names the strategy.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from services.shared.config import Settings

logger = logging.getLogger(__name__)


def format_invoice_number(prefix: str, year: int, count: int) -> str:
    """Format ``PREFIX-YYYY-NNNN`` (count zero-padded to four digits)."""
    return f"{prefix}-{year}-{count:04d}"


def parse_sequence(invoice_number: str) -> int | None:
    """Return the trailing count of ``PREFIX-YYYY-NNNN``, or None if absent."""
    _, _, tail = invoice_number.rpartition("-")
    if tail.isascii() and tail.isdigit():
        return int(tail)
    return None


class InvoiceNumberer(ABC):
    """Issues display numbers for newly saved invoices."""

    def __init__(self, prefix: str = "INV") -> None:
        self.prefix = prefix

    @abstractmethod
    def next_number(self, collection_size: int, created_at: datetime) -> str:
        """Issue the number for an invoice being saved now.

        Args:
            collection_size: Number of invoices currently stored
            created_at: Creation timestamp of the new invoice (supplies the year)

        Returns:
            Formatted invoice number
        """
        pass

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Strategy identifier (matches Settings.invoice_numbering)."""
        pass


class CollectionSizeNumberer(InvoiceNumberer):
    """Derives the count from the live collection size."""

    def next_number(self, collection_size: int, created_at: datetime) -> str:
        return format_invoice_number(self.prefix, created_at.year, collection_size + 1)

    @property
    def strategy_name(self) -> str:
        return "collection_size"


class MonotonicNumberer(InvoiceNumberer):
    """Counter that only ever moves forward.

    Attributes:
        counter: Last issued count (0 before any invoice is saved)
    """

    def __init__(self, prefix: str = "INV", counter: int = 0) -> None:
        super().__init__(prefix)
        self.counter = max(counter, 0)

    def next_number(self, collection_size: int, created_at: datetime) -> str:
        self.counter += 1
        return format_invoice_number(self.prefix, created_at.year, self.counter)

    @property
    def strategy_name(self) -> str:
        return "monotonic"


class NumbererRegistry:
    """Registry of available numbering strategies."""

    _strategies: dict[str, type[InvoiceNumberer]] = {
        "monotonic": MonotonicNumberer,
        "collection_size": CollectionSizeNumberer,
    }

    @classmethod
    def register(cls, name: str, numberer_class: type[InvoiceNumberer]) -> None:
        """Register a new strategy.

        Args:
            name: Strategy identifier
            numberer_class: Class implementing InvoiceNumberer
        """
        cls._strategies[name] = numberer_class
        logger.info(f"Registered invoice numbering strategy: {name}")

    @classmethod
    def get_numberer_class(cls, name: str) -> type[InvoiceNumberer]:
        """Get strategy class by name.

        Raises:
            ValueError: If strategy not found in registry
        """
        if name not in cls._strategies:
            available = ", ".join(cls._strategies.keys())
            raise ValueError(
                f"Unknown invoice numbering strategy: '{name}'. "
                f"Available strategies: {available}"
            )
        return cls._strategies[name]

    @classmethod
    def list_strategies(cls) -> list[str]:
        return list(cls._strategies.keys())


def create_numberer(settings: Settings) -> InvoiceNumberer:
    """Create the numbering strategy named by ``settings.invoice_numbering``.

    Raises:
        ValueError: If configured strategy is unknown
    """
    numberer_class = NumbererRegistry.get_numberer_class(settings.invoice_numbering)
    numberer = numberer_class(prefix=settings.invoice_number_prefix)
    logger.info(f"Created invoice numbering strategy: {settings.invoice_numbering}")
    return numberer
