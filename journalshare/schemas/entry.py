"""Entry API schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field

from journalshare.schemas.base import CamelModel


class EntryWriteRequest(CamelModel):
    """Body for POST /journals/{id}/entries; entryId present means update.

    entryType is checked by the service so unknown types report INVALID_ARGUMENT.
    """

    entry_type: str
    name: str
    details: Any = None
    entry_id: str | None = Field(default=None, min_length=1)


class EntryWriteResponse(CamelModel):
    result: str
    message: str
    id: str


class InvoiceConversionResponse(CamelModel):
    success: bool = True
    invoice_id: str
    invoice_number: str
    due_date: datetime
    status: str
