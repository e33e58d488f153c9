"""Tests for the Firestore REST client transaction protocol (httpx.MockTransport)."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from journalshare.infrastructure.exceptions import (
    DocumentExistsError,
    StoreUnavailableException,
    TransactionAbortedException,
)
from journalshare.infrastructure.firebase._rest_client import FirestoreRESTClient
from journalshare.domain.exceptions import ResourceNotFoundException
from journalshare.shared.field_values import DELETE_FIELD, SERVER_TIMESTAMP, field_path
from journalshare.shared.result import Err, Ok

JOURNAL_DOC = {
    "name": "projects/proj/databases/(default)/documents/journals/j1",
    "fields": {"title": {"stringValue": "Acme"}},
}


class FakeFirestore:
    """Routes REST calls by action; records every request body."""

    def __init__(self, commit_statuses: list[int] | None = None) -> None:
        self.commit_statuses = list(commit_statuses or [])
        self.calls: list[tuple[str, dict | None]] = []
        self.begun = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        if path.endswith(":beginTransaction"):
            self.begun += 1
            self.calls.append(("begin", body))
            return httpx.Response(200, json={"transaction": f"tx{self.begun}"})
        if path.endswith(":commit"):
            self.calls.append(("commit", body))
            status = self.commit_statuses.pop(0) if self.commit_statuses else 200
            if status == 409:
                return httpx.Response(409, json={"error": {"status": "ABORTED"}})
            if status == 4090:
                return httpx.Response(409, json={"error": {"status": "ALREADY_EXISTS"}})
            return httpx.Response(status, json={"writeResults": []})
        if path.endswith(":rollback"):
            self.calls.append(("rollback", body))
            return httpx.Response(200, json={})
        if path.endswith(":runQuery"):
            self.calls.append(("query", body))
            return httpx.Response(
                200, json=[{"document": JOURNAL_DOC}, {"readTime": "2024-05-01T00:00:00Z"}]
            )
        if request.method == "GET":
            self.calls.append(("get", dict(request.url.params)))
            if path.endswith("/journals/j1"):
                return httpx.Response(200, json=JOURNAL_DOC)
            return httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})
        return httpx.Response(500)

    def bodies(self, kind: str) -> list:
        return [body for name, body in self.calls if name == kind]


def make_client(fake: FakeFirestore, max_attempts: int = 3) -> FirestoreRESTClient:
    credentials = MagicMock(valid=True, token="test-token")
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    return FirestoreRESTClient("proj", credentials, http_client=http, max_attempts=max_attempts)


async def test_transaction_reads_with_id_and_commits_field_mask() -> None:
    fake = FakeFirestore()
    client = make_client(fake)
    ref = client.document("journals/j1")

    async def body(txn):
        snapshot = await txn.get(ref)
        txn.update(
            ref,
            {
                "title": "New",
                field_path("pendingAccess", "bob@x.com"): DELETE_FIELD,
                "updatedAt": SERVER_TIMESTAMP,
            },
        )
        return Ok(snapshot.to_dict()["title"])

    result = await client.run_transaction(body)

    assert result.unwrap() == "Acme"
    assert fake.bodies("get") == [{"transaction": "tx1"}]
    (commit,) = fake.bodies("commit")
    assert commit["transaction"] == "tx1"
    (write,) = commit["writes"]
    assert write["updateMask"]["fieldPaths"] == ["title", "pendingAccess.`bob@x.com`"]
    assert write["currentDocument"] == {"exists": True}
    assert write["updateTransforms"] == [
        {"fieldPath": "updatedAt", "setToServerValue": "REQUEST_TIME"}
    ]


async def test_aborted_commit_retries_with_previous_transaction() -> None:
    fake = FakeFirestore(commit_statuses=[409, 200])
    client = make_client(fake)
    ref = client.document("journals/j1")
    runs = 0

    async def body(txn):
        nonlocal runs
        runs += 1
        await txn.get(ref)
        txn.update(ref, {"title": "New"})
        return Ok(runs)

    result = await client.run_transaction(body)

    assert result.unwrap() == 2
    begins = fake.bodies("begin")
    assert begins[0] == {"options": {"readWrite": {}}}
    assert begins[1] == {"options": {"readWrite": {"retryTransaction": "tx1"}}}
    assert [c["transaction"] for c in fake.bodies("commit")] == ["tx1", "tx2"]


async def test_retry_budget_exhausted_raises_aborted() -> None:
    fake = FakeFirestore(commit_statuses=[409, 409])
    client = make_client(fake, max_attempts=2)
    ref = client.document("journals/j1")

    async def body(txn):
        await txn.get(ref)
        txn.update(ref, {"title": "New"})
        return Ok(None)

    with pytest.raises(TransactionAbortedException) as exc_info:
        await client.run_transaction(body)
    assert exc_info.value.error_code == "ABORTED"
    assert len(fake.bodies("commit")) == 2


async def test_err_outcome_rolls_back_without_commit() -> None:
    fake = FakeFirestore()
    client = make_client(fake)
    ref = client.document("journals/missing")

    async def body(txn):
        if await txn.get(ref) is None:
            return Err(ResourceNotFoundException("journal", "missing"))
        return Ok(None)

    result = await client.run_transaction(body)

    assert isinstance(result, Err)
    assert fake.bodies("commit") == []
    assert fake.bodies("rollback") == [{"transaction": "tx1"}]


async def test_create_on_existing_document_raises_exists() -> None:
    fake = FakeFirestore(commit_statuses=[4090])
    client = make_client(fake)
    with pytest.raises(DocumentExistsError):
        await client.document("journals/j1").create({"title": "Acme"})
    (commit,) = fake.bodies("commit")
    assert commit["writes"][0]["currentDocument"] == {"exists": False}


async def test_unavailable_store_maps_to_unavailable() -> None:
    fake = FakeFirestore(commit_statuses=[503])
    client = make_client(fake)
    with pytest.raises(StoreUnavailableException):
        await client.document("journals/j1").update({"title": "x"})


async def test_query_streams_documents_with_array_contains_filter() -> None:
    fake = FakeFirestore()
    client = make_client(fake)

    docs = [
        doc
        async for doc in client.collection("journals")
        .where("access_array", "array-contains", "U1")
        .stream()
    ]

    assert [(d.id, d.to_dict()) for d in docs] == [("j1", {"title": "Acme"})]
    (query,) = fake.bodies("query")
    assert query["structuredQuery"]["where"] == {
        "fieldFilter": {
            "field": {"fieldPath": "access_array"},
            "op": "ARRAY_CONTAINS",
            "value": {"stringValue": "U1"},
        }
    }


async def test_query_sends_limit_only_when_set() -> None:
    """Unlimited by default, like the memory store; .limit(n) caps the result set."""
    fake = FakeFirestore()
    client = make_client(fake)
    journals = client.collection("journals")

    [doc async for doc in journals.where("isActive", "==", True).stream()]
    [doc async for doc in journals.where("isActive", "==", True).limit(5).stream()]

    unlimited, limited = fake.bodies("query")
    assert "limit" not in unlimited["structuredQuery"]
    assert limited["structuredQuery"]["limit"] == 5


async def test_generated_document_ids_are_unique() -> None:
    client = make_client(FakeFirestore())
    collection = client.collection("journals")
    assert collection.document().id != collection.document().id
    assert collection.document("j1").path == "journals/j1"
