"""Journal API: thin routes delegating to JournalService."""

from fastapi import APIRouter, Depends, Query, Request

from journalshare.api.v1.dependencies import get_current_principal, get_journal_service
from journalshare.application.dtos.principal import Principal
from journalshare.application.use_cases.journals.journal_service import JournalService
from journalshare.core.limiter import limit_create_journal, limit_writes
from journalshare.schemas.journal import (
    JournalCreateRequest,
    JournalCreateResponse,
    JournalResponse,
    JournalUpdateRequest,
    MessageResponse,
    SuccessResponse,
)

router = APIRouter()


@router.post("", response_model=JournalCreateResponse, status_code=201)
@limit_create_journal
async def create_journal(
    request: Request,
    body: JournalCreateRequest,
    principal: Principal = Depends(get_current_principal),
    journals: JournalService = Depends(get_journal_service),
):
    """Create a journal; the caller becomes its only admin."""
    journal_id = await journals.create_journal(
        principal, body.title, body.journal_type, body.details
    )
    return JournalCreateResponse(journal_id=journal_id)


@router.get("", response_model=list[JournalResponse])
async def list_journals(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    principal: Principal = Depends(get_current_principal),
    journals: JournalService = Depends(get_journal_service),
):
    """Journals the caller has an access entry on."""
    items = await journals.list_journals(principal, include_inactive=include_inactive)
    return [JournalResponse.from_entity(j) for j in items]


@router.get("/{journal_id}", response_model=JournalResponse)
async def get_journal(
    journal_id: str,
    principal: Principal = Depends(get_current_principal),
    journals: JournalService = Depends(get_journal_service),
):
    return JournalResponse.from_entity(await journals.get_journal(principal, journal_id))


@router.patch("/{journal_id}", response_model=SuccessResponse)
@limit_writes
async def update_journal(
    request: Request,
    journal_id: str,
    body: JournalUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    journals: JournalService = Depends(get_journal_service),
):
    """Update title and/or details (partial). Admin only."""
    await journals.update_journal(principal, journal_id, title=body.title, details=body.details)
    return SuccessResponse()


@router.delete("/{journal_id}", response_model=MessageResponse)
@limit_writes
async def delete_journal(
    request: Request,
    journal_id: str,
    principal: Principal = Depends(get_current_principal),
    journals: JournalService = Depends(get_journal_service),
):
    """Soft delete: the journal is marked inactive, nothing is removed."""
    await journals.soft_delete_journal(principal, journal_id)
    return MessageResponse(message="Journal deleted successfully.")
