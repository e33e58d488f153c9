"""Journal API schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field

from journalshare.domain.entities.journal import JournalEntity
from journalshare.schemas.base import CamelModel


class JournalCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=254)
    journal_type: str
    details: dict[str, Any] = Field(default_factory=dict)


class JournalCreateResponse(CamelModel):
    journal_id: str


class JournalUpdateRequest(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=254)
    details: dict[str, Any] | None = None


class AccessEntryResponse(CamelModel):
    role: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")


class JournalResponse(CamelModel):
    """Journal in list/get responses."""

    id: str
    title: str
    journal_type: str
    details: dict[str, Any]
    access: dict[str, AccessEntryResponse]
    access_array: list[str] = Field(..., alias="access_array")
    pending_access: dict[str, str]
    inventory_cache: dict[str, Any]
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @classmethod
    def from_entity(cls, journal: JournalEntity) -> "JournalResponse":
        return cls(
            id=journal.id,
            title=journal.title,
            journal_type=journal.journal_type,
            details=journal.details,
            access={
                uid: AccessEntryResponse(
                    role=entry.role,
                    email=entry.email,
                    display_name=entry.display_name,
                    photo_url=entry.photo_url,
                )
                for uid, entry in journal.access.items()
            },
            access_array=journal.access_array,
            pending_access=journal.pending_access,
            inventory_cache=journal.inventory_cache,
            is_active=journal.is_active,
            created_at=journal.created_at,
            updated_at=journal.updated_at,
            deleted_at=journal.deleted_at,
            deleted_by=journal.deleted_by,
        )


class SuccessResponse(CamelModel):
    success: bool = True


class MessageResponse(CamelModel):
    message: str
