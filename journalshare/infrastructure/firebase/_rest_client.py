"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
Transactions use beginTransaction / commit / rollback with optimistic
retries: an ABORTED (409) read or commit restarts the body from scratch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from journalshare.application.interfaces.store import TransactionBody
from journalshare.infrastructure.exceptions import (
    DocumentExistsError,
    DocumentNotFoundError,
    StoreUnavailableException,
    TransactionAbortedException,
    TransactionConflictError,
)
from journalshare.infrastructure.firebase._rest_encoding import (
    _encode_value,
    build_create_write,
    build_delete_write,
    build_set_write,
    build_update_write,
    decode_document,
)
from journalshare.shared.result import Err, Result
from journalshare.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"
_RETRY_BACKOFF_SECONDS = 0.05


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


def _error_status(resp: httpx.Response) -> str:
    """google.rpc status string from an error body ('ABORTED', 'ALREADY_EXISTS', ...)."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if isinstance(body, list):
        body = body[0] if body else {}
    return (body.get("error") or {}).get("status", "")


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    *,
    resource: str = "",
) -> Any:
    """Perform async HTTP request to Firestore REST API.

    404 on GET/DELETE returns None; on POST (commit) it means an update
    targeted a missing document. 409 distinguishes transaction contention
    from create-on-existing-id.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    try:
        if method == "GET":
            resp = await client.get(url, headers=headers)
        elif method == "POST":
            resp = await client.post(url, headers=headers, json=body)
        elif method == "DELETE":
            resp = await client.delete(url, headers=headers)
        else:
            raise ValueError(f"Unsupported method: {method!r}")
    except httpx.TransportError as e:
        raise StoreUnavailableException("Document store is not reachable") from e
    if resp.status_code == 404:
        if method == "POST":
            raise DocumentNotFoundError(resource)
        return None
    if resp.status_code == 409:
        if _error_status(resp) == "ALREADY_EXISTS":
            raise DocumentExistsError(resource)
        raise TransactionConflictError(_error_status(resp) or "ABORTED")
    if resp.status_code in (429, 503):
        raise StoreUnavailableException("Document store is temporarily unavailable")
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    if method == "DELETE":
        return {}
    return resp.json() if resp.content else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", name: str):
        self._client = client
        self._name = name

    @property
    def id(self) -> str:
        return self._name.rsplit("/", 1)[-1]

    @property
    def name(self) -> str:
        """Full resource name (projects/.../documents/...)."""
        return self._name

    @property
    def path(self) -> str:
        return self._name[len(self._client.documents_root) + 1:]

    def collection(self, collection_id: str) -> "CollectionReference":
        return CollectionReference(self._client, f"{self._name}/{collection_id}")

    async def get(self, *, transaction: str | None = None) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        url = f"{_BASE}/{self._name}"
        if transaction:
            url = f"{url}?transaction={quote(transaction, safe='')}"
        out = await _request_async(
            self._client._http,
            url,
            access_token=await self._client.get_token(),
            resource=self.path,
        )
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_document(out))

    async def create(self, data: dict[str, Any]) -> None:
        """Create the document; raises DocumentExistsError if the id is taken."""
        await self._client.commit([build_create_write(self._name, data)])

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (server timestamps and array transforms allowed)."""
        await self._client.commit([build_set_write(self._name, data)])

    async def update(self, fields: dict[str, Any]) -> None:
        """Update only the given field paths; raises DocumentNotFoundError if missing."""
        await self._client.commit([build_update_write(self._name, fields)])

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing."""
        await self._client.commit([build_delete_write(self._name)])


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array_contains": "ARRAY_CONTAINS",
    "array-contains": "ARRAY_CONTAINS",
    "array_contains_any": "ARRAY_CONTAINS_ANY",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


class _Query:
    """Fluent query builder for a collection; runs via runQuery (filters ANDed on the server)."""

    def __init__(
        self,
        client: "FirestoreRESTClient",
        parent: str,
        collection_id: str,
        filters: list[tuple[str, str, Any]] | None = None,
    ):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[tuple[str, str, Any]] = list(filters or [])
        self._limit: int | None = None

    def where(self, field: str, op: str, value: Any) -> "_Query":
        self._filters.append((field, _OP_MAP.get(op, op), value))
        return self

    def limit(self, n: int) -> "_Query":
        self._limit = n
        return self

    def _where_clause(self) -> dict | None:
        clauses = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": op,
                    "value": _encode_value(value),
                }
            }
            for field, op, value in self._filters
        ]
        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return {"compositeFilter": {"op": "AND", "filters": clauses}}

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        structured: dict[str, Any] = {
            "from": [{"collectionId": self._collection_id}],
        }
        where = self._where_clause()
        if where is not None:
            structured["where"] = where
        if self._limit is not None:
            structured["limit"] = self._limit

        url = f"{_BASE}/{self._parent}:runQuery"
        resp = await _request_async(
            self._client._http,
            url,
            method="POST",
            body={"structuredQuery": structured},
            access_token=await self._client.get_token(),
            resource=f"{self._parent}/{self._collection_id}",
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            doc = item["document"]
            name = doc.get("name", "")
            doc_id = name.split("/")[-1] if name else ""
            yield DocumentSnapshot(doc_id, decode_document(doc))


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", name: str):
        self._client = client
        self._name = name.rstrip("/")

    @property
    def path(self) -> str:
        return self._name[len(self._client.documents_root) + 1:]

    def document(self, document_id: str | None = None) -> DocumentReference:
        return DocumentReference(self._client, f"{self._name}/{document_id or generate_cuid()}")

    def _query(self) -> _Query:
        parent = self._name.rsplit("/", 1)[0]
        collection_id = self._name.split("/")[-1]
        return _Query(self._client, parent, collection_id)

    def where(self, field: str, op: str, value: Any) -> _Query:
        """Start a query with a filter. Chain .where(), .limit(), then .stream()."""
        return self._query().where(field, op, value)

    def limit(self, n: int) -> _Query:
        return self._query().limit(n)

    def stream(self) -> AsyncIterator[DocumentSnapshot]:
        return self._query().stream()


class Transaction:
    """Read-write transaction: reads go through the transaction id, writes are buffered."""

    def __init__(self, client: "FirestoreRESTClient", transaction_id: str):
        self._client = client
        self.id = transaction_id
        self.writes: list[dict] = []

    async def get(self, ref: DocumentReference) -> DocumentSnapshot | None:
        return await ref.get(transaction=self.id)

    def create(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(build_create_write(ref.name, data))

    def set(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(build_set_write(ref.name, data))

    def update(self, ref: DocumentReference, fields: dict[str, Any]) -> None:
        self.writes.append(build_update_write(ref.name, fields))


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        max_attempts: int = 5,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._database = f"projects/{project_id}/databases/(default)"
        self.documents_root = f"{self._database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None
        self.max_attempts = max_attempts

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, path: str) -> CollectionReference:
        return CollectionReference(self, f"{self.documents_root}/{path.strip('/')}")

    def document(self, path: str) -> DocumentReference:
        return DocumentReference(self, f"{self.documents_root}/{path.strip('/')}")

    async def commit(self, writes: list[dict], *, transaction: str | None = None) -> None:
        """Commit writes atomically (optionally closing a transaction)."""
        body: dict[str, Any] = {"writes": writes}
        if transaction:
            body["transaction"] = transaction
        await _request_async(
            self._http,
            f"{_BASE}/{self.documents_root}:commit",
            method="POST",
            body=body,
            access_token=await self.get_token(),
            resource=self._commit_resource(writes),
        )

    def _commit_resource(self, writes: list[dict]) -> str:
        for write in writes:
            name = write.get("delete") or write.get("update", {}).get("name", "")
            if name:
                return name[len(self.documents_root) + 1:]
        return ""

    async def _begin_transaction(self, retry_of: str | None) -> str:
        read_write: dict[str, Any] = {}
        if retry_of:
            read_write["retryTransaction"] = retry_of
        out = await _request_async(
            self._http,
            f"{_BASE}/{self.documents_root}:beginTransaction",
            method="POST",
            body={"options": {"readWrite": read_write}},
            access_token=await self.get_token(),
        )
        return out["transaction"]

    async def _rollback(self, transaction_id: str) -> None:
        try:
            await _request_async(
                self._http,
                f"{_BASE}/{self.documents_root}:rollback",
                method="POST",
                body={"transaction": transaction_id},
                access_token=await self.get_token(),
            )
        except Exception as e:
            # Server-side transactions expire on their own; nothing to undo locally.
            logger.warning("Firestore rollback failed for transaction: %s", e)

    async def run_transaction(
        self, body: TransactionBody, *, max_attempts: int | None = None
    ) -> Result:
        """Run body in a read-write transaction, retrying on contention.

        Err outcomes roll back and are returned without retry. Exceptions
        raised by the body roll back and propagate.
        """
        attempts = max_attempts or self.max_attempts
        previous: str | None = None
        for attempt in range(1, attempts + 1):
            transaction_id = await self._begin_transaction(previous)
            txn = Transaction(self, transaction_id)
            try:
                outcome = await body(txn)
                if isinstance(outcome, Err):
                    await self._rollback(transaction_id)
                    return outcome
                await self.commit(txn.writes, transaction=transaction_id)
                return outcome
            except TransactionConflictError:
                logger.info(
                    "Firestore transaction conflict (attempt %s/%s); retrying",
                    attempt,
                    attempts,
                )
                previous = transaction_id
                await asyncio.sleep(_RETRY_BACKOFF_SECONDS * attempt)
            except Exception:
                await self._rollback(transaction_id)
                raise
        raise TransactionAbortedException(attempts)
