"""Domain entities: journal access model."""

from journalshare.domain.entities.journal import (
    AccessEntry,
    JournalEntity,
    is_allowed,
    normalize_email,
)

__all__ = [
    "AccessEntry",
    "JournalEntity",
    "is_allowed",
    "normalize_email",
]
