"""Core constants: store collection names and trigger paths.

Firestore has no DDL. Collections are created on first write; these
constants are the single source of truth for the document layout.
"""

from journalshare.domain.enums import EntryType

COLLECTION_JOURNALS = "journals"

# Sub-collection under journals/{journalId} holding audit events of journal-level calls.
SUBCOLLECTION_EVENTS = "events"

# Change-subscription pattern for the inventory cache trigger.
INVENTORY_TRIGGER_PATTERN = (
    f"{COLLECTION_JOURNALS}/{{journalId}}/{EntryType.INVENTORY.subcollection}/{{itemId}}"
)
