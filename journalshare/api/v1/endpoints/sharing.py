"""Sharing API: contributors (invite/remove) and invitation handling."""

from fastapi import APIRouter, Depends, Request

from journalshare.api.v1.dependencies import get_current_principal, get_sharing_service
from journalshare.application.dtos.principal import Principal
from journalshare.application.use_cases.sharing.sharing_service import SharingService
from journalshare.core.limiter import limit_writes
from journalshare.domain.enums import ContributorOperation
from journalshare.domain.exceptions import ValidationException
from journalshare.schemas.sharing import ContributorRequest, ShareRequest, ShareResponse

router = APIRouter()


@router.post("/{journal_id}/contributors", response_model=ShareResponse)
@limit_writes
async def manage_contributor(
    request: Request,
    journal_id: str,
    body: ContributorRequest,
    principal: Principal = Depends(get_current_principal),
    sharing: SharingService = Depends(get_sharing_service),
):
    """Invite (add) or remove a contributor by email."""
    if body.operation == ContributorOperation.REMOVE:
        result = await sharing.remove_access(principal, journal_id, body.email)
    else:
        if body.role is None:
            raise ValidationException("role is required for add", field="role")
        result = await sharing.invite(principal, journal_id, body.email, body.role)
    return ShareResponse(result=result.result, message=result.message, role=result.role)


@router.post("/{journal_id}/share", response_model=ShareResponse, response_model_exclude_none=True)
@limit_writes
async def accept_share(
    request: Request,
    journal_id: str,
    body: ShareRequest,
    principal: Principal = Depends(get_current_principal),
    sharing: SharingService = Depends(get_sharing_service),
):
    """Accept, ignore or check the caller's pending invitation."""
    result = await sharing.accept_share(principal, journal_id, body.operation)
    return ShareResponse(result=result.result, message=result.message, role=result.role)
