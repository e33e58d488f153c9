"""Keeps journals/{id}.inventoryCache in sync with the inventory_items sub-collection.

Runs once per committed inventory write, possibly more than once and out
of order. Each run touches only inventoryCache.<itemId> and updatedAt.

The event only says which item changed. Inside a transaction on the
journal, the item document itself is read and its current state is
projected: absent or inactive removes the key, active upserts it. A late
delivery therefore re-projects the latest state instead of its own stale
payload, so a removed item can never reappear.
"""

from __future__ import annotations

import logging
from typing import Any

from journalshare.application.dtos.results import InventoryWriteEvent
from journalshare.application.interfaces.store import IDocumentStore, ITransaction
from journalshare.application.services.details_validator import DetailsValidator
from journalshare.core.constants import COLLECTION_JOURNALS
from journalshare.domain.enums import EntryType, JournalType
from journalshare.domain.exceptions import SchemaValidationException
from journalshare.shared.field_values import DELETE_FIELD, SERVER_TIMESTAMP, field_path
from journalshare.shared.result import Ok, Result
from journalshare.shared.utils.datetime import coerce_utc

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("createdAt", "updatedAt", "deletedAt")


def _with_utc_timestamps(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of data with ISO-string timestamps turned into UTC datetimes."""
    normalized = dict(data)
    for key in TIMESTAMP_FIELDS:
        value = normalized.get(key)
        if isinstance(value, str):
            parsed = coerce_utc(value)
            if parsed is not None:
                normalized[key] = parsed
    return normalized


class InventoryCacheUpdater:
    def __init__(self, store: IDocumentStore, validator: DetailsValidator) -> None:
        self.store = store
        self.validator = validator

    async def handle(self, event: InventoryWriteEvent) -> None:
        """Apply one inventory write to the parent journal's cache. Never raises."""
        try:
            await self._apply(event)
        except Exception:
            logger.exception(
                "Inventory cache update failed for journal %s item %s",
                event.journal_id,
                event.item_id,
            )

    def _project(self, item: dict[str, Any]) -> dict[str, Any]:
        details = self.validator.validate_entry(EntryType.INVENTORY, item.get("details"))
        return _with_utc_timestamps({**item, "details": details})

    async def _apply(self, event: InventoryWriteEvent) -> None:
        if event.before is None and event.after is None:
            logger.info(
                "Inventory event without before/after for item %s; nothing to do",
                event.item_id,
            )
            return

        journal_ref = self.store.collection(COLLECTION_JOURNALS).document(event.journal_id)
        item_ref = journal_ref.collection(EntryType.INVENTORY.subcollection).document(
            event.item_id
        )
        cache_path = field_path("inventoryCache", event.item_id)
        rejected: list[str] = []

        async def body(txn: ITransaction) -> Result[str]:
            rejected.clear()
            snapshot = await txn.get(journal_ref)
            if snapshot is None:
                return Ok("journal missing")
            journal = snapshot.to_dict()
            if journal.get("journalType") != JournalType.BUSINESS.value:
                return Ok("not a business journal")
            cached = (journal.get("inventoryCache") or {}).get(event.item_id)

            item_snapshot = await txn.get(item_ref)
            item = item_snapshot.to_dict() if item_snapshot is not None else None
            if item is None or item.get("isActive") is False:
                if cached is None:
                    return Ok("already absent")
                txn.update(journal_ref, {cache_path: DELETE_FIELD, "updatedAt": SERVER_TIMESTAMP})
                return Ok("removed")

            try:
                entry = self._project(item)
            except SchemaValidationException as e:
                rejected.append(e.message)
                return Ok("invalid item skipped")
            if entry == cached:
                return Ok("unchanged")
            txn.update(journal_ref, {cache_path: entry, "updatedAt": SERVER_TIMESTAMP})
            return Ok("upserted")

        outcome = (await self.store.run_transaction(body)).unwrap()
        if rejected:
            logger.error(
                "Invalid inventory item %s in journal %s; cache not updated: %s",
                event.item_id,
                event.journal_id,
                rejected[0],
            )
            return
        logger.info(
            "Inventory cache for journal %s item %s: %s",
            event.journal_id,
            event.item_id,
            outcome,
        )
