"""Domain enumerations for journalshare.

Enums represent fixed sets of domain values (roles, journal and entry
types, sharing operations).
"""

from enum import Enum


class JournalRole(str, Enum):
    """Role a contributor holds on one journal.

    Roles are an unordered set; what each role may do is decided by the
    configured capability sets, not by comparing roles.
    """

    VIEWER = "viewer"
    REPORTER = "reporter"
    STAFF = "staff"
    EDITOR = "editor"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid role values as strings."""
        return [role.value for role in cls]


class JournalType(str, Enum):
    """Discriminates the schema of a journal's details."""

    BUSINESS = "business"


class EntryType(str, Enum):
    """Entry kinds stored in a journal's type-specific sub-collections."""

    CASHFLOW = "cashflow"
    INVENTORY = "inventory"
    ESTIMATE = "estimate"

    @property
    def subcollection(self) -> str:
        """Sub-collection under journals/{journalId} holding this entry type."""
        return _ENTRY_SUBCOLLECTIONS[self]

    @classmethod
    def values(cls) -> list[str]:
        return [entry_type.value for entry_type in cls]


_ENTRY_SUBCOLLECTIONS: dict[EntryType, str] = {
    EntryType.CASHFLOW: "cashflow_entries",
    EntryType.INVENTORY: "inventory_items",
    EntryType.ESTIMATE: "estimates",
}


class ContributorOperation(str, Enum):
    """Operation requested on the contributors endpoint."""

    ADD = "add"
    REMOVE = "remove"


class ShareOperation(str, Enum):
    """Operation an invitee performs on a pending invitation."""

    ACCEPT = "accept"
    IGNORE = "ignore"
    CHECK = "check"


class EstimateStatus(str, Enum):
    """Estimate / invoice status stored in estimate details."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
