"""Sharing and invitations: invite, remove access, accept/ignore/check.

Every mutation of the access triple (access, access_array, pendingAccess)
runs inside one store transaction whose body re-reads the journal on each
attempt. Bodies return Ok/Err and never raise domain errors, so a retried
attempt starts from a clean slate; the error is raised once the
transaction has finished.
"""

from __future__ import annotations

import logging

from journalshare.application.dtos.principal import Principal
from journalshare.application.dtos.results import ShareResult
from journalshare.application.interfaces.store import (
    IDocumentReference,
    IDocumentStore,
    ITransaction,
)
from journalshare.application.services.authorization_service import AuthorizationService
from journalshare.core.constants import COLLECTION_JOURNALS
from journalshare.domain.entities.journal import JournalEntity, normalize_email
from journalshare.domain.enums import JournalRole, ShareOperation
from journalshare.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from journalshare.shared.field_values import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    field_path,
)
from journalshare.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)

ALREADY_HAS_ACCESS = "User already has access"
IGNORED = "Ignored grant to access journal"
PENDING_INVITATION = "You have a pending invitation."
ACCEPTED = "Accepted grant to access journal"
OPERATION_COMPLETED = "operation completed successfully"


def _clean_email(email: str) -> str:
    cleaned = normalize_email(email or "")
    if "@" not in cleaned:
        raise ValidationException("A valid email is required", field="email")
    return cleaned


def _parse_role(role: JournalRole | str) -> JournalRole:
    try:
        return JournalRole(role)
    except ValueError as e:
        raise ValidationException(
            f"Invalid role: {role!r}. Allowed: {', '.join(JournalRole.values())}",
            field="role",
        ) from e


class SharingService:
    def __init__(self, store: IDocumentStore, authorization: AuthorizationService) -> None:
        self.store = store
        self.authorization = authorization

    def _ref(self, journal_id: str) -> IDocumentReference:
        return self.store.collection(COLLECTION_JOURNALS).document(journal_id)

    async def _read(
        self, txn: ITransaction, ref: IDocumentReference, journal_id: str
    ) -> JournalEntity | ResourceNotFoundException:
        snapshot = await txn.get(ref)
        if snapshot is None:
            return ResourceNotFoundException("journal", journal_id)
        return JournalEntity.from_dict(snapshot.id, snapshot.to_dict())

    async def invite(
        self,
        principal: Principal,
        journal_id: str,
        email: str,
        role: JournalRole | str,
    ) -> ShareResult:
        """Grant role to email: updates an active contributor or records a pending invitation.

        An active admin target is left unchanged (admin roles are managed elsewhere).
        """
        email = _clean_email(email)
        new_role = _parse_role(role)
        ref = self._ref(journal_id)

        async def body(txn: ITransaction) -> Result[ShareResult]:
            journal = await self._read(txn, ref, journal_id)
            if isinstance(journal, ResourceNotFoundException):
                return Err(journal)
            denial = self.authorization.denial(
                journal, principal.uid, self.authorization.policy.share, "share"
            )
            if denial is not None:
                return Err(denial)

            contributor = journal.find_contributor(email)
            if contributor is not None:
                uid, entry = contributor
                if entry.role == JournalRole.ADMIN.value:
                    return Ok(ShareResult(message=OPERATION_COMPLETED))
                txn.update(
                    ref,
                    {
                        field_path("access", uid, "role"): new_role.value,
                        "updatedAt": SERVER_TIMESTAMP,
                    },
                )
                return Ok(ShareResult(message=OPERATION_COMPLETED, role=new_role.value))

            fields = {
                field_path("pendingAccess", email): new_role.value,
                "updatedAt": SERVER_TIMESTAMP,
            }
            stale_key = journal.pending_key(email)
            if stale_key is not None and stale_key != email:
                fields[field_path("pendingAccess", stale_key)] = DELETE_FIELD
            txn.update(ref, fields)
            return Ok(ShareResult(message=OPERATION_COMPLETED, role=new_role.value))

        result = (await self.store.run_transaction(body)).unwrap()
        logger.info("Invite on journal %s by %s: role %s", journal_id, principal.uid, new_role.value)
        return result

    async def remove_access(
        self, principal: Principal, journal_id: str, email: str
    ) -> ShareResult:
        """Remove an active contributor or a pending invitation; no-op if neither matches."""
        email = _clean_email(email)
        ref = self._ref(journal_id)

        async def body(txn: ITransaction) -> Result[ShareResult]:
            journal = await self._read(txn, ref, journal_id)
            if isinstance(journal, ResourceNotFoundException):
                return Err(journal)
            denial = self.authorization.denial(
                journal, principal.uid, self.authorization.policy.share, "share"
            )
            if denial is not None:
                return Err(denial)

            fields: dict = {}
            contributor = journal.find_contributor(email)
            if contributor is not None:
                uid, entry = contributor
                if entry.role == JournalRole.ADMIN.value and len(journal.admin_uids()) <= 1:
                    return Err(AuthorizationException(message="cannot remove the sole admin"))
                fields[field_path("access", uid)] = DELETE_FIELD
                fields["access_array"] = ArrayRemove([uid])
            pending_key = journal.pending_key(email)
            if pending_key is not None:
                fields[field_path("pendingAccess", pending_key)] = DELETE_FIELD
            if fields:
                fields["updatedAt"] = SERVER_TIMESTAMP
                txn.update(ref, fields)
            return Ok(ShareResult(message=OPERATION_COMPLETED))

        result = (await self.store.run_transaction(body)).unwrap()
        logger.info("Remove access on journal %s by %s", journal_id, principal.uid)
        return result

    async def accept_share(
        self,
        principal: Principal,
        journal_id: str,
        operation: ShareOperation | str,
    ) -> ShareResult:
        """Accept, ignore or check the principal's pending invitation."""
        if not principal.email or not principal.email_verified:
            raise AuthenticationException("A verified email is required to manage invitations")
        try:
            op = ShareOperation(operation)
        except ValueError as e:
            raise ValidationException(
                f"Invalid operation: {operation!r}", field="operation"
            ) from e
        if op is ShareOperation.IGNORE:
            return ShareResult(message=IGNORED)

        email = normalize_email(principal.email)
        ref = self._ref(journal_id)

        async def body(txn: ITransaction) -> Result[ShareResult]:
            journal = await self._read(txn, ref, journal_id)
            if isinstance(journal, ResourceNotFoundException):
                return Err(journal)
            if journal.has_access(principal.uid):
                return Ok(ShareResult(message=ALREADY_HAS_ACCESS, role=journal.role_of(principal.uid)))

            pending_role = journal.pending_role(email)
            if op is ShareOperation.CHECK:
                if pending_role is None:
                    return Err(ResourceNotFoundException("invitation", email))
                return Ok(ShareResult(message=PENDING_INVITATION, role=pending_role))

            if pending_role is None:
                return Err(AuthorizationException(message="No pending invitation for this user"))
            txn.update(
                ref,
                {
                    field_path("access", principal.uid): principal.access_entry(pending_role).to_dict(),
                    field_path("pendingAccess", journal.pending_key(email)): DELETE_FIELD,
                    "access_array": ArrayUnion([principal.uid]),
                    "updatedAt": SERVER_TIMESTAMP,
                },
            )
            return Ok(ShareResult(message=ACCEPTED, role=pending_role))

        result = (await self.store.run_transaction(body)).unwrap()
        logger.info("Share %s on journal %s by %s", op.value, journal_id, principal.uid)
        return result
