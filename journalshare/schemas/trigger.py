"""Store change trigger payloads (delivered by the hosted store's event pipeline)."""

from typing import Any

from journalshare.schemas.base import CamelModel


class InventoryTriggerRequest(CamelModel):
    """One write to journals/{journalId}/inventory_items/{itemId}; absent side is null."""

    journal_id: str
    item_id: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
