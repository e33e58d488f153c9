"""Tests for entry endpoints, estimate conversion and the inventory cache subscription."""

from httpx import AsyncClient, Response

from tests.conftest import BOB, BUSINESS_DETAILS, ESTIMATE_DETAILS, INVENTORY_DETAILS


async def create_journal(client: AsyncClient) -> str:
    response = await client.post(
        "/api/v1/journals",
        json={"title": "Acme", "journalType": "business", "details": BUSINESS_DETAILS},
    )
    return response.json()["journalId"]


async def write_entry(client: AsyncClient, journal_id: str, **body) -> Response:
    return await client.post(f"/api/v1/journals/{journal_id}/entries", json=body)


async def test_inventory_entry_lands_in_journal_cache(client: AsyncClient, api_store) -> None:
    journal_id = await create_journal(client)

    response = await write_entry(
        client, journal_id, entryType="inventory", name="Tile", details=INVENTORY_DETAILS
    )
    assert response.status_code == 200
    body = response.json()
    assert body["result"] == "ok"
    assert body["message"] == "Entry added successfully"
    item_id = body["id"]

    await api_store.wait_for_triggers()
    cache = (await client.get(f"/api/v1/journals/{journal_id}")).json()["inventoryCache"]
    assert cache[item_id]["name"] == "Tile"
    assert cache[item_id]["details"]["unitPrice"] == 9.99


async def test_update_and_delete_keep_cache_in_sync(client: AsyncClient, api_store) -> None:
    journal_id = await create_journal(client)
    item_id = (
        await write_entry(
            client, journal_id, entryType="inventory", name="Tile", details=INVENTORY_DETAILS
        )
    ).json()["id"]

    updated = await write_entry(
        client,
        journal_id,
        entryType="inventory",
        name="Tile (grey)",
        details=INVENTORY_DETAILS,
        entryId=item_id,
    )
    assert updated.json()["message"] == "Entry updated successfully"
    await api_store.wait_for_triggers()
    cache = (await client.get(f"/api/v1/journals/{journal_id}")).json()["inventoryCache"]
    assert cache[item_id]["name"] == "Tile (grey)"

    deleted = await client.delete(f"/api/v1/journals/{journal_id}/entries/inventory/{item_id}")
    assert deleted.json() == {"message": "Entry deleted successfully."}
    await api_store.wait_for_triggers()
    cache = (await client.get(f"/api/v1/journals/{journal_id}")).json()["inventoryCache"]
    assert item_id not in cache


async def test_unknown_entry_type_is_bad_request(client: AsyncClient) -> None:
    journal_id = await create_journal(client)

    response = await write_entry(client, journal_id, entryType="payroll", name="Run", details={})

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_ARGUMENT"


async def test_short_name_is_bad_request(client: AsyncClient) -> None:
    journal_id = await create_journal(client)

    response = await write_entry(
        client, journal_id, entryType="inventory", name="ab", details=INVENTORY_DETAILS
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"field": "name"}


async def test_non_member_cannot_add(client: AsyncClient, as_user) -> None:
    journal_id = await create_journal(client)
    as_user.principal = BOB

    response = await write_entry(
        client, journal_id, entryType="inventory", name="Tile", details=INVENTORY_DETAILS
    )

    assert response.status_code == 403


async def test_update_missing_entry_is_not_found(client: AsyncClient) -> None:
    journal_id = await create_journal(client)

    response = await write_entry(
        client,
        journal_id,
        entryType="inventory",
        name="Tile",
        details=INVENTORY_DETAILS,
        entryId="missing",
    )

    assert response.status_code == 404


async def test_convert_estimate(client: AsyncClient) -> None:
    journal_id = await create_journal(client)
    estimate_id = (
        await write_entry(
            client, journal_id, entryType="estimate", name="Kitchen", details=ESTIMATE_DETAILS
        )
    ).json()["id"]

    response = await client.post(
        f"/api/v1/journals/{journal_id}/estimates/{estimate_id}/convert"
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["invoiceId"] == estimate_id
    assert body["status"] == "pending"
    assert body["invoiceNumber"].startswith("INV-")
    assert body["dueDate"]

    again = await client.post(f"/api/v1/journals/{journal_id}/estimates/{estimate_id}/convert")
    assert again.status_code == 412
    assert again.json()["error"] == "FAILED_PRECONDITION"
