"""Sharing API schemas (contributors and invitations)."""

from pydantic import EmailStr

from journalshare.domain.enums import ContributorOperation, JournalRole, ShareOperation
from journalshare.schemas.base import CamelModel


class ContributorRequest(CamelModel):
    """Body for POST /journals/{id}/contributors. Role is ignored for remove."""

    email: EmailStr
    role: JournalRole | None = None
    operation: ContributorOperation


class ShareRequest(CamelModel):
    operation: ShareOperation


class ShareResponse(CamelModel):
    result: str
    message: str | None = None
    role: str | None = None
