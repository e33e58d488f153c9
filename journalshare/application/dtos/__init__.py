"""Application DTOs (no dependency on the store backend)."""

from journalshare.application.dtos.principal import Principal
from journalshare.application.dtos.results import (
    EntryWriteResult,
    InventoryWriteEvent,
    InvoiceConversionResult,
    ShareResult,
)

__all__ = [
    "EntryWriteResult",
    "InventoryWriteEvent",
    "InvoiceConversionResult",
    "Principal",
    "ShareResult",
]
