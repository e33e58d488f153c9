"""Journal lifecycle: create, update, soft delete, list and get."""

from __future__ import annotations

import logging
from typing import Any

from journalshare.application.dtos.principal import Principal
from journalshare.application.interfaces.store import IDocumentReference, IDocumentStore
from journalshare.application.services.audit_service import AuditService
from journalshare.application.services.authorization_service import AuthorizationService
from journalshare.application.services.details_validator import (
    DetailsValidator,
    resolve_journal_type,
)
from journalshare.core.constants import COLLECTION_JOURNALS
from journalshare.domain.entities.journal import JournalEntity
from journalshare.domain.enums import JournalRole, JournalType
from journalshare.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from journalshare.shared.field_values import SERVER_TIMESTAMP, field_path

logger = logging.getLogger(__name__)


class JournalService:
    """Creates journals and applies admin-gated changes to them.

    None of these operations touches the access triple after creation, so
    they run without a transaction.
    """

    def __init__(
        self,
        store: IDocumentStore,
        authorization: AuthorizationService,
        validator: DetailsValidator,
        audit: AuditService,
    ) -> None:
        self.store = store
        self.authorization = authorization
        self.validator = validator
        self.audit = audit

    def _ref(self, journal_id: str) -> IDocumentReference:
        return self.store.collection(COLLECTION_JOURNALS).document(journal_id)

    async def _load(self, journal_id: str) -> tuple[IDocumentReference, JournalEntity]:
        ref = self._ref(journal_id)
        snapshot = await ref.get()
        if snapshot is None:
            raise ResourceNotFoundException("journal", journal_id)
        return ref, JournalEntity.from_dict(snapshot.id, snapshot.to_dict())

    async def create_journal(
        self,
        principal: Principal,
        title: str,
        journal_type: JournalType | str,
        details: Any,
    ) -> str:
        """Create a journal owned by principal (sole admin). Returns the new id."""
        if not title or not title.strip():
            raise ValidationException("Title is required", field="title")
        resolved_type = resolve_journal_type(journal_type)
        cleaned = self.validator.validate_journal(resolved_type, details)

        ref = self.store.collection(COLLECTION_JOURNALS).document()
        owner = principal.access_entry(JournalRole.ADMIN.value)
        await ref.create(
            {
                "title": title.strip(),
                "journalType": resolved_type.value,
                "details": cleaned,
                "access": {principal.uid: owner.to_dict()},
                "access_array": [principal.uid],
                "pendingAccess": {},
                "isActive": True,
                "createdAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
            }
        )
        logger.info("Journal %s created by %s", ref.id, principal.uid)
        await self.audit.record_call(
            ref.id,
            "createNewJournal",
            principal.uid,
            {"title": title, "journalType": resolved_type.value, "details": cleaned},
        )
        return ref.id

    async def update_journal(
        self,
        principal: Principal,
        journal_id: str,
        title: str | None = None,
        details: Any = None,
    ) -> None:
        """Apply the provided title/details fields plus updatedAt.

        Details are partial: each provided key replaces details.<key> only.
        """
        ref, journal = await self._load(journal_id)
        if not journal.is_active:
            raise AuthorizationException(message="This journal is not active.")
        self.authorization.require(
            journal, principal.uid, self.authorization.policy.journal_update, "update"
        )

        fields: dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                raise ValidationException("Title must not be empty", field="title")
            fields["title"] = title.strip()
        if details is not None:
            cleaned = self.validator.validate_journal_update(
                resolve_journal_type(journal.journal_type), details
            )
            for key, value in cleaned.items():
                fields[field_path("details", key)] = value
        if not fields:
            return

        fields["updatedAt"] = SERVER_TIMESTAMP
        await ref.update(fields)
        logger.info("Journal %s updated by %s", journal_id, principal.uid)
        await self.audit.record_call(
            journal_id,
            "updateJournal",
            principal.uid,
            {"id": journal_id, "title": title, "details": details},
        )

    async def soft_delete_journal(self, principal: Principal, journal_id: str) -> None:
        """Mark the journal inactive. Entries and sub-collections are left in place."""
        ref, journal = await self._load(journal_id)
        self.authorization.require(
            journal, principal.uid, self.authorization.policy.may_delete, "delete"
        )
        await ref.update(
            {
                "isActive": False,
                "deletedAt": SERVER_TIMESTAMP,
                "deletedBy": principal.uid,
                "updatedAt": SERVER_TIMESTAMP,
            }
        )
        logger.info("Journal %s soft-deleted by %s", journal_id, principal.uid)
        await self.audit.record_call(
            journal_id, "deleteJournal", principal.uid, {"journalId": journal_id}
        )

    async def list_journals(
        self, principal: Principal, include_inactive: bool = False
    ) -> list[JournalEntity]:
        """Journals principal has an access entry on (via the access_array index)."""
        journals = []
        query = self.store.collection(COLLECTION_JOURNALS).where(
            "access_array", "array-contains", principal.uid
        )
        async for snapshot in query.stream():
            journal = JournalEntity.from_dict(snapshot.id, snapshot.to_dict())
            if journal.is_active or include_inactive:
                journals.append(journal)
        return journals

    async def get_journal(self, principal: Principal, journal_id: str) -> JournalEntity:
        _, journal = await self._load(journal_id)
        if not journal.has_access(principal.uid):
            raise AuthorizationException(resource="journal", action="read")
        return journal
