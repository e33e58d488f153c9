"""Entry lifecycle: add or update, soft delete, and estimate-to-invoice conversion."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from journalshare.application.dtos.principal import Principal
from journalshare.application.dtos.results import EntryWriteResult, InvoiceConversionResult
from journalshare.application.interfaces.store import (
    ICollectionReference,
    IDocumentReference,
    IDocumentStore,
    ITransaction,
)
from journalshare.application.services.authorization_service import AuthorizationService
from journalshare.application.services.details_validator import (
    DetailsValidator,
    resolve_entry_type,
)
from journalshare.core.constants import COLLECTION_JOURNALS
from journalshare.domain.entities.journal import JournalEntity
from journalshare.domain.enums import EntryType, EstimateStatus
from journalshare.domain.exceptions import (
    FailedPreconditionException,
    ResourceNotFoundException,
    ValidationException,
)
from journalshare.shared.field_values import SERVER_TIMESTAMP, field_path
from journalshare.shared.result import Err, Ok, Result
from journalshare.shared.utils.datetime import coerce_utc, utc_now
from journalshare.shared.utils.generators import generate_invoice_number

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 254
INVOICE_DUE_DAYS = 30


def _check_name(name: str) -> str:
    if not isinstance(name, str) or not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationException(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters.",
            field="name",
        )
    return name


class EntryService:
    """Entries are independent documents under journals/{id}/<subcollection>."""

    def __init__(
        self,
        store: IDocumentStore,
        authorization: AuthorizationService,
        validator: DetailsValidator,
    ) -> None:
        self.store = store
        self.authorization = authorization
        self.validator = validator

    def _journal_ref(self, journal_id: str) -> IDocumentReference:
        return self.store.collection(COLLECTION_JOURNALS).document(journal_id)

    def _entries(self, journal_id: str, entry_type: EntryType) -> ICollectionReference:
        return self._journal_ref(journal_id).collection(entry_type.subcollection)

    async def _load_journal(self, journal_id: str) -> JournalEntity:
        snapshot = await self._journal_ref(journal_id).get()
        if snapshot is None:
            raise ResourceNotFoundException("journal", journal_id)
        return JournalEntity.from_dict(snapshot.id, snapshot.to_dict())

    async def add_or_update_entry(
        self,
        principal: Principal,
        journal_id: str,
        entry_type: EntryType | str,
        name: str,
        details: Any,
        entry_id: str | None = None,
    ) -> EntryWriteResult:
        """Create a new entry, or replace name/details of an existing one.

        Update keeps createdBy/createdAt and reactivates the entry.
        """
        journal = await self._load_journal(journal_id)
        self.authorization.require(
            journal, principal.uid, self.authorization.policy.may_add, "add entry"
        )
        resolved_type = resolve_entry_type(entry_type)
        _check_name(name)
        cleaned = self.validator.validate_entry(resolved_type, details)
        entries = self._entries(journal_id, resolved_type)

        if entry_id:
            entry_ref = entries.document(entry_id)

            async def body(txn: ITransaction) -> Result[EntryWriteResult]:
                if await txn.get(entry_ref) is None:
                    return Err(ResourceNotFoundException(resolved_type.value, entry_id))
                txn.update(
                    entry_ref,
                    {
                        "name": name,
                        "details": cleaned,
                        "isActive": True,
                        "updatedAt": SERVER_TIMESTAMP,
                    },
                )
                return Ok(EntryWriteResult("ok", "Entry updated successfully", entry_id))

            result = (await self.store.run_transaction(body)).unwrap()
            logger.info(
                "%s entry %s updated in journal %s by %s",
                resolved_type.value,
                entry_id,
                journal_id,
                principal.uid,
            )
            return result

        entry_ref = entries.document()
        await entry_ref.create(
            {
                "name": name,
                "details": cleaned,
                "isActive": True,
                "createdBy": principal.uid,
                "createdAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
            }
        )
        logger.info(
            "%s entry %s added to journal %s by %s",
            resolved_type.value,
            entry_ref.id,
            journal_id,
            principal.uid,
        )
        return EntryWriteResult("ok", "Entry added successfully", entry_ref.id)

    async def delete_entry(
        self,
        principal: Principal,
        journal_id: str,
        entry_id: str,
        entry_type: EntryType | str,
    ) -> None:
        """Soft delete: isActive=False plus deletion metadata."""
        journal = await self._load_journal(journal_id)
        self.authorization.require(
            journal, principal.uid, self.authorization.policy.may_delete, "delete entry"
        )
        resolved_type = resolve_entry_type(entry_type)
        entry_ref = self._entries(journal_id, resolved_type).document(entry_id)

        async def body(txn: ITransaction) -> Result[None]:
            if await txn.get(entry_ref) is None:
                return Err(ResourceNotFoundException(resolved_type.value, entry_id))
            txn.update(
                entry_ref,
                {
                    "isActive": False,
                    "deletedAt": SERVER_TIMESTAMP,
                    "deletedBy": principal.uid,
                    "updatedAt": SERVER_TIMESTAMP,
                },
            )
            return Ok(None)

        (await self.store.run_transaction(body)).unwrap()
        logger.info(
            "%s entry %s deleted from journal %s by %s",
            resolved_type.value,
            entry_id,
            journal_id,
            principal.uid,
        )

    async def convert_estimate_to_invoice(
        self, principal: Principal, journal_id: str, estimate_id: str
    ) -> InvoiceConversionResult:
        """Turn an accepted estimate into a pending invoice, in place.

        Existing invoice number, due date and payments are kept.
        """
        journal_ref = self._journal_ref(journal_id)
        estimate_ref = self._entries(journal_id, EntryType.ESTIMATE).document(estimate_id)

        async def body(txn: ITransaction) -> Result[InvoiceConversionResult]:
            journal_snapshot = await txn.get(journal_ref)
            if journal_snapshot is None:
                return Err(ResourceNotFoundException("journal", journal_id))
            journal = JournalEntity.from_dict(journal_snapshot.id, journal_snapshot.to_dict())
            denial = self.authorization.denial(
                journal, principal.uid, self.authorization.policy.may_add, "convert estimate"
            )
            if denial is not None:
                return Err(denial)

            estimate_snapshot = await txn.get(estimate_ref)
            if estimate_snapshot is None:
                return Err(ResourceNotFoundException(EntryType.ESTIMATE.value, estimate_id))
            details = estimate_snapshot.to_dict().get("details") or {}
            status = details.get("status")
            if status != EstimateStatus.ACCEPTED.value:
                return Err(
                    FailedPreconditionException(
                        f"Estimate cannot be converted with status: {status}.",
                        status=status,
                    )
                )

            invoice_number = details.get("invoiceNumber") or generate_invoice_number()
            due_date = coerce_utc(details.get("dueDate")) or utc_now() + timedelta(
                days=INVOICE_DUE_DAYS
            )
            txn.update(
                estimate_ref,
                {
                    field_path("details", "status"): EstimateStatus.PENDING.value,
                    field_path("details", "invoiceNumber"): invoice_number,
                    field_path("details", "dueDate"): due_date,
                    field_path("details", "payments"): details.get("payments") or [],
                    "updatedAt": SERVER_TIMESTAMP,
                },
            )
            return Ok(
                InvoiceConversionResult(
                    invoice_id=estimate_id,
                    invoice_number=invoice_number,
                    due_date=due_date,
                    status=EstimateStatus.PENDING.value,
                )
            )

        result = (await self.store.run_transaction(body)).unwrap()
        logger.info(
            "Estimate %s converted to invoice %s in journal %s",
            estimate_id,
            result.invoice_number,
            journal_id,
        )
        return result
