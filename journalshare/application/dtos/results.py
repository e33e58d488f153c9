"""DTOs returned by journal, sharing and entry use cases."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ShareResult:
    """Outcome of invite/remove/accept-share calls."""

    result: str = "ok"
    message: str | None = None
    role: str | None = None


@dataclass(frozen=True)
class EntryWriteResult:
    result: str
    message: str
    id: str


@dataclass(frozen=True)
class InvoiceConversionResult:
    """Estimate converted in place to an invoice."""

    invoice_id: str
    invoice_number: str
    due_date: datetime
    status: str


@dataclass(frozen=True)
class InventoryWriteEvent:
    """A committed write to journals/{journal_id}/inventory_items/{item_id}.

    before/after are the document data around the write; None means the
    document did not exist on that side (create / hard delete).
    """

    journal_id: str
    item_id: str
    before: dict[str, Any] | None
    after: dict[str, Any] | None
