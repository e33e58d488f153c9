"""Tests for the journal inventory cache kept in sync with inventory item writes."""

from datetime import UTC, datetime, timedelta

from journalshare.application.dtos.results import InventoryWriteEvent
from journalshare.core.lifespan import subscribe_inventory_cache
from tests.conftest import ALICE, BOB, INVENTORY_DETAILS, add_member, read_journal

T0 = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


def item(updated_at: datetime = T0, **overrides) -> dict:
    return {
        "name": "Tile",
        "details": INVENTORY_DETAILS,
        "isActive": True,
        "createdBy": "U1",
        "updatedAt": updated_at,
        **overrides,
    }


async def write_item(store, journal_id: str, item_id: str, data: dict | None) -> None:
    """Commit the inventory document itself; None deletes it."""
    ref = store.document(f"journals/{journal_id}/inventory_items/{item_id}")
    if data is None:
        await ref.delete()
    else:
        await ref.set(data)


async def cache_of(store, journal_id: str) -> dict:
    return (await read_journal(store, journal_id)).get("inventoryCache", {})


async def test_create_upserts_cache_entry(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))

    cache = await cache_of(store, journal_id)
    assert cache["i1"]["name"] == "Tile"
    assert cache["i1"]["details"] == INVENTORY_DETAILS


async def test_item_id_with_dash_is_stored_under_its_own_key(
    cache_updater, store, journal_id
) -> None:
    await write_item(store, journal_id, "item-1", item())

    await cache_updater.handle(InventoryWriteEvent(journal_id, "item-1", None, item()))

    assert list(await cache_of(store, journal_id)) == ["item-1"]


async def test_soft_delete_removes_cache_entry(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))
    later = item(T0 + timedelta(minutes=1), isActive=False)
    await write_item(store, journal_id, "i1", later)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", item(), later))

    assert "i1" not in await cache_of(store, journal_id)


async def test_hard_delete_removes_cache_entry(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))
    await write_item(store, journal_id, "i1", None)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", item(), None))

    assert "i1" not in await cache_of(store, journal_id)


async def test_redelivery_is_idempotent(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())
    event = InventoryWriteEvent(journal_id, "i1", None, item())
    await cache_updater.handle(event)
    first = await cache_of(store, journal_id)

    await cache_updater.handle(event)

    assert await cache_of(store, journal_id) == first


async def test_repeated_delete_is_noop(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))
    await write_item(store, journal_id, "i1", None)
    delete = InventoryWriteEvent(journal_id, "i1", item(), None)

    await cache_updater.handle(delete)
    after_first = await read_journal(store, journal_id)
    await cache_updater.handle(delete)

    assert await read_journal(store, journal_id) == after_first
    assert "i1" not in after_first["inventoryCache"]


async def test_stale_delivery_does_not_roll_back(cache_updater, store, journal_id) -> None:
    newer = item(T0 + timedelta(minutes=5), name="Tile v2")
    await write_item(store, journal_id, "i1", newer)
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", item(), newer))

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))

    assert (await cache_of(store, journal_id))["i1"]["name"] == "Tile v2"


async def test_stale_soft_delete_is_skipped(cache_updater, store, journal_id) -> None:
    """A late deactivation of an item that is active again leaves it cached."""
    newer = item(T0 + timedelta(minutes=5))
    await write_item(store, journal_id, "i1", newer)
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, newer))

    await cache_updater.handle(
        InventoryWriteEvent(journal_id, "i1", item(), item(isActive=False))
    )

    assert "i1" in await cache_of(store, journal_id)


async def test_older_upsert_after_deactivation_stays_removed(
    cache_updater, store, journal_id
) -> None:
    deactivated = item(T0 + timedelta(minutes=5), isActive=False)
    await write_item(store, journal_id, "i1", deactivated)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", item(), deactivated))
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))

    assert "i1" not in await cache_of(store, journal_id)


async def test_older_create_after_hard_delete_stays_removed(
    cache_updater, store, journal_id
) -> None:
    await write_item(store, journal_id, "i1", item())
    await write_item(store, journal_id, "i1", None)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", item(), None))
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))

    assert "i1" not in await cache_of(store, journal_id)


async def test_string_timestamps_are_cached_as_datetimes(
    cache_updater, store, journal_id
) -> None:
    stored = item(createdAt="2024-05-01T10:00:00Z", updatedAt="2024-05-01T10:05:00Z")
    await write_item(store, journal_id, "i1", stored)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, stored))

    cached = (await cache_of(store, journal_id))["i1"]
    assert cached["createdAt"] == T0
    assert cached["updatedAt"] == T0 + timedelta(minutes=5)


async def test_invalid_details_leave_cache_unchanged(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())
    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))
    bad = item(T0 + timedelta(minutes=1), details={"description": "Tile"})
    await write_item(store, journal_id, "i1", bad)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", item(), bad))

    assert (await cache_of(store, journal_id))["i1"]["details"] == INVENTORY_DETAILS


async def test_event_without_before_or_after_is_ignored(cache_updater, store, journal_id) -> None:
    await write_item(store, journal_id, "i1", item())
    before = await read_journal(store, journal_id)

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, None))

    assert await read_journal(store, journal_id) == before


async def test_missing_journal_is_ignored(cache_updater, store) -> None:
    await cache_updater.handle(InventoryWriteEvent("nope", "i1", None, item()))

    assert await store.document("journals/nope").get() is None


async def test_non_business_journal_is_ignored(cache_updater, store) -> None:
    await store.document("journals/j2").create(
        {"title": "Notes", "journalType": "personal", "access": {}, "access_array": []}
    )
    await write_item(store, "j2", "i1", item())

    await cache_updater.handle(InventoryWriteEvent("j2", "i1", None, item()))

    assert "inventoryCache" not in (await store.document("journals/j2").get()).to_dict()


async def test_only_cache_and_updated_at_change(cache_updater, store, journal_id) -> None:
    before = await read_journal(store, journal_id)
    await write_item(store, journal_id, "i1", item())

    await cache_updater.handle(InventoryWriteEvent(journal_id, "i1", None, item()))

    after = await read_journal(store, journal_id)
    changed = {k for k in after if after.get(k) != before.get(k)}
    assert changed <= {"inventoryCache", "updatedAt"}
    assert after["access"] == before["access"]
    assert ALICE.uid in after["access_array"]


async def test_entry_writes_reach_cache_through_subscription(
    entry_service, sharing_service, store, journal_id
) -> None:
    """An editor adds an inventory item, then deactivates it; the cache follows both writes."""
    subscribe_inventory_cache(store)
    await add_member(sharing_service, journal_id, BOB, "editor")

    created = await entry_service.add_or_update_entry(
        BOB, journal_id, "inventory", "Widget", INVENTORY_DETAILS
    )
    await store.wait_for_triggers()

    cached = (await cache_of(store, journal_id))[created.id]
    assert cached["createdBy"] == "U2"
    assert cached["name"] == "Widget"
    assert cached["details"]["unitPrice"] == 9.99

    await entry_service.delete_entry(BOB, journal_id, created.id, "inventory")
    await store.wait_for_triggers()

    assert created.id not in await cache_of(store, journal_id)
