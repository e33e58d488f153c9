"""Journal access model and the authorization predicate.

A journal document owns three related fields:

- ``access``: uid -> {role, email, displayName, photoURL}
- ``access_array``: the key set of ``access``, kept for array-contains queries
- ``pendingAccess``: invitee email -> proposed role

Every mutation of these fields happens inside one store transaction so
``access_array`` never drifts from ``access`` and an identity is never both
pending and active.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from journalshare.domain.enums import JournalRole


def normalize_email(email: str) -> str:
    """Emails are compared and stored lower-cased without surrounding spaces."""
    return email.strip().lower()


@dataclass(frozen=True)
class AccessEntry:
    """One active contributor on a journal."""

    role: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AccessEntry:
        return cls(
            role=data.get("role", ""),
            email=data.get("email"),
            display_name=data.get("displayName"),
            photo_url=data.get("photoURL"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "email": self.email,
            "displayName": self.display_name,
            "photoURL": self.photo_url,
        }


def is_allowed(
    access: Mapping[str, AccessEntry | Mapping[str, Any]],
    uid: str,
    required_roles: Iterable[JournalRole | str],
) -> bool:
    """Return True if ``uid`` has an access entry whose role is in ``required_roles``.

    Pure function: no I/O, no role ordering. A missing entry or an unknown
    role is never allowed.
    """
    entry = access.get(uid)
    if entry is None:
        return False
    role = entry.role if isinstance(entry, AccessEntry) else entry.get("role")
    if not role:
        return False
    allowed = {r.value if isinstance(r, JournalRole) else r for r in required_roles}
    return role in allowed


@dataclass
class JournalEntity:
    """Read model of a journal document."""

    id: str
    title: str
    journal_type: str
    details: dict[str, Any] = field(default_factory=dict)
    access: dict[str, AccessEntry] = field(default_factory=dict)
    access_array: list[str] = field(default_factory=list)
    pending_access: dict[str, str] = field(default_factory=dict)
    inventory_cache: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @classmethod
    def from_dict(cls, journal_id: str, data: Mapping[str, Any]) -> JournalEntity:
        return cls(
            id=journal_id,
            title=data.get("title", ""),
            journal_type=data.get("journalType", ""),
            details=dict(data.get("details") or {}),
            access={
                uid: AccessEntry.from_dict(entry)
                for uid, entry in (data.get("access") or {}).items()
            },
            access_array=list(data.get("access_array") or []),
            pending_access=dict(data.get("pendingAccess") or {}),
            inventory_cache=dict(data.get("inventoryCache") or {}),
            is_active=data.get("isActive", True) is not False,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            deleted_at=data.get("deletedAt"),
            deleted_by=data.get("deletedBy"),
        )

    def role_of(self, uid: str) -> str | None:
        entry = self.access.get(uid)
        return entry.role if entry else None

    def has_access(self, uid: str) -> bool:
        return uid in self.access

    def is_allowed(self, uid: str, required_roles: Iterable[JournalRole | str]) -> bool:
        return is_allowed(self.access, uid, required_roles)

    def find_contributor(self, email: str) -> tuple[str, AccessEntry] | None:
        """Return (uid, entry) of the active contributor with this email, if any."""
        wanted = normalize_email(email)
        for uid, entry in self.access.items():
            if entry.email and normalize_email(entry.email) == wanted:
                return uid, entry
        return None

    def pending_role(self, email: str) -> str | None:
        wanted = normalize_email(email)
        for pending_email, role in self.pending_access.items():
            if normalize_email(pending_email) == wanted:
                return role
        return None

    def pending_key(self, email: str) -> str | None:
        """Stored pendingAccess key matching ``email`` (keys written before normalization may differ in case)."""
        wanted = normalize_email(email)
        for pending_email in self.pending_access:
            if normalize_email(pending_email) == wanted:
                return pending_email
        return None

    def admin_uids(self) -> list[str]:
        return [
            uid for uid, entry in self.access.items()
            if entry.role == JournalRole.ADMIN.value
        ]

    def access_index_in_sync(self) -> bool:
        """access_array holds exactly the keys of access."""
        return (
            len(self.access_array) == len(set(self.access_array))
            and set(self.access_array) == set(self.access)
        )
