"""Tests for the inventory change trigger endpoint (shared-secret protected)."""

import pytest
from httpx import AsyncClient

from journalshare.core.config import Settings
from journalshare.infrastructure.memory import InMemoryDocumentStore
from tests.conftest import ALICE, BUSINESS_DETAILS, INVENTORY_DETAILS, TRIGGER_SECRET

ITEM = {
    "name": "Tile",
    "details": INVENTORY_DETAILS,
    "isActive": True,
    "updatedAt": "2024-05-01T10:00:00Z",
}

HEADERS = {"X-Trigger-Secret": TRIGGER_SECRET}


@pytest.fixture
async def trigger_store(app) -> InMemoryDocumentStore:
    """App store without the in-process subscription, so only the endpoint updates the cache."""
    store = InMemoryDocumentStore(max_attempts=5)
    app.state.store = store
    yield store
    await store.aclose()


async def create_journal(client: AsyncClient) -> str:
    response = await client.post(
        "/api/v1/journals",
        json={"title": "Acme", "journalType": "business", "details": BUSINESS_DETAILS},
    )
    return response.json()["journalId"]


async def test_trigger_requires_secret(client: AsyncClient) -> None:
    body = {"journalId": "j1", "itemId": "i1", "after": ITEM}

    missing = await client.post("/api/v1/triggers/inventory", json=body)
    wrong = await client.post(
        "/api/v1/triggers/inventory", json=body, headers={"X-Trigger-Secret": "nope"}
    )

    assert missing.status_code == 401
    assert wrong.status_code == 401


async def test_trigger_not_configured(client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr(
        "journalshare.api.v1.endpoints.triggers.get_settings",
        lambda: Settings(database_backend="memory", trigger_secret=None),
    )

    response = await client.post(
        "/api/v1/triggers/inventory",
        json={"journalId": "j1", "itemId": "i1"},
        headers=HEADERS,
    )

    assert response.status_code == 503


async def test_trigger_updates_cache(client: AsyncClient, trigger_store) -> None:
    journal_id = await create_journal(client)
    item_ref = trigger_store.document(f"journals/{journal_id}/inventory_items/item-1")
    await item_ref.set(ITEM)

    created = await client.post(
        "/api/v1/triggers/inventory",
        json={"journalId": journal_id, "itemId": "item-1", "before": None, "after": ITEM},
        headers=HEADERS,
    )
    assert created.status_code == 204
    cache = (await client.get(f"/api/v1/journals/{journal_id}")).json()["inventoryCache"]
    assert cache["item-1"]["name"] == "Tile"

    await item_ref.delete()
    removed = await client.post(
        "/api/v1/triggers/inventory",
        json={"journalId": journal_id, "itemId": "item-1", "before": ITEM, "after": None},
        headers=HEADERS,
    )
    assert removed.status_code == 204
    journal = (await client.get(f"/api/v1/journals/{journal_id}")).json()
    assert journal["inventoryCache"] == {}
    assert journal["access"][ALICE.uid]["role"] == "admin"


async def test_late_create_after_removal_is_not_cached(
    client: AsyncClient, trigger_store
) -> None:
    journal_id = await create_journal(client)
    inactive = {**ITEM, "isActive": False, "updatedAt": "2024-05-01T10:05:00Z"}
    await trigger_store.document(f"journals/{journal_id}/inventory_items/i1").set(inactive)

    for before, after in ((ITEM, inactive), (None, ITEM)):
        response = await client.post(
            "/api/v1/triggers/inventory",
            json={"journalId": journal_id, "itemId": "i1", "before": before, "after": after},
            headers=HEADERS,
        )
        assert response.status_code == 204

    assert (await client.get(f"/api/v1/journals/{journal_id}")).json()["inventoryCache"] == {}


async def test_trigger_with_invalid_item_still_acknowledges(
    client: AsyncClient, trigger_store
) -> None:
    journal_id = await create_journal(client)
    await trigger_store.document(f"journals/{journal_id}/inventory_items/i1").set(
        {"details": {}}
    )

    response = await client.post(
        "/api/v1/triggers/inventory",
        json={"journalId": journal_id, "itemId": "i1", "after": {"details": {}}},
        headers=HEADERS,
    )

    assert response.status_code == 204
    assert (await client.get(f"/api/v1/journals/{journal_id}")).json()["inventoryCache"] == {}
