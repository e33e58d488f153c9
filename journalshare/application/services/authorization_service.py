"""Authorization service: role capability sets applied through the journal access predicate."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from journalshare.core.config import Settings
from journalshare.domain.entities.journal import JournalEntity
from journalshare.domain.enums import JournalRole
from journalshare.domain.exceptions import AuthorizationException


@dataclass(frozen=True)
class RolePolicy:
    """Independent role sets per capability (never derived from a role ranking)."""

    may_add: frozenset[JournalRole]
    may_delete: frozenset[JournalRole]
    share: frozenset[JournalRole]
    journal_update: frozenset[JournalRole]

    @classmethod
    def from_settings(cls, settings: Settings) -> RolePolicy:
        return cls(
            may_add=settings.may_add_role_set,
            may_delete=settings.may_delete_role_set,
            share=settings.share_role_set,
            journal_update=settings.journal_update_role_set,
        )


class AuthorizationService:
    """Centralized journal permission checks."""

    def __init__(self, policy: RolePolicy) -> None:
        self.policy = policy

    def denial(
        self,
        journal: JournalEntity,
        uid: str,
        roles: Iterable[JournalRole],
        action: str,
    ) -> AuthorizationException | None:
        """Return the error to report if uid may not perform action, else None.

        Transaction bodies return the error as Err instead of raising it.
        """
        if journal.is_allowed(uid, roles):
            return None
        return AuthorizationException(resource="journal", action=action)

    def require(
        self,
        journal: JournalEntity,
        uid: str,
        roles: Iterable[JournalRole],
        action: str,
    ) -> None:
        """Raise AuthorizationException if uid's role is not in roles."""
        error = self.denial(journal, uid, roles, action)
        if error is not None:
            raise error
