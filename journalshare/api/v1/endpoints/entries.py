"""Entry API: add/update, soft delete and estimate conversion."""

from fastapi import APIRouter, Depends, Request

from journalshare.api.v1.dependencies import get_current_principal, get_entry_service
from journalshare.application.dtos.principal import Principal
from journalshare.application.use_cases.entries.entry_service import EntryService
from journalshare.core.limiter import limit_writes
from journalshare.schemas.entry import (
    EntryWriteRequest,
    EntryWriteResponse,
    InvoiceConversionResponse,
)
from journalshare.schemas.journal import MessageResponse

router = APIRouter()


@router.post("/{journal_id}/entries", response_model=EntryWriteResponse)
@limit_writes
async def add_or_update_entry(
    request: Request,
    journal_id: str,
    body: EntryWriteRequest,
    principal: Principal = Depends(get_current_principal),
    entries: EntryService = Depends(get_entry_service),
):
    """Create an entry, or update it when entryId is given."""
    result = await entries.add_or_update_entry(
        principal,
        journal_id,
        body.entry_type,
        body.name,
        body.details,
        entry_id=body.entry_id,
    )
    return EntryWriteResponse(result=result.result, message=result.message, id=result.id)


@router.delete("/{journal_id}/entries/{entry_type}/{entry_id}", response_model=MessageResponse)
@limit_writes
async def delete_entry(
    request: Request,
    journal_id: str,
    entry_type: str,
    entry_id: str,
    principal: Principal = Depends(get_current_principal),
    entries: EntryService = Depends(get_entry_service),
):
    await entries.delete_entry(principal, journal_id, entry_id, entry_type)
    return MessageResponse(message="Entry deleted successfully.")


@router.post(
    "/{journal_id}/estimates/{estimate_id}/convert",
    response_model=InvoiceConversionResponse,
)
@limit_writes
async def convert_estimate(
    request: Request,
    journal_id: str,
    estimate_id: str,
    principal: Principal = Depends(get_current_principal),
    entries: EntryService = Depends(get_entry_service),
):
    """Convert an accepted estimate into a pending invoice."""
    result = await entries.convert_estimate_to_invoice(principal, journal_id, estimate_id)
    return InvoiceConversionResponse(
        invoice_id=result.invoice_id,
        invoice_number=result.invoice_number,
        due_date=result.due_date,
        status=result.status,
    )
