"""In-process document store with the same transaction semantics as Firestore.

Used when DATABASE_BACKEND=memory (local runs, tests). Each document
carries a version; a transaction records the version of every document it
reads and its commit fails with a conflict if any of them changed, after
which the body is re-run from scratch. Commits are staged and applied all
at once, so a failed write leaves no partial state.

Writes are published to change subscribers (on_write) as background
tasks, mirroring how the hosted store fans out document triggers.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from journalshare.application.interfaces.store import TransactionBody
from journalshare.infrastructure.exceptions import (
    DocumentExistsError,
    DocumentNotFoundError,
    TransactionAbortedException,
    TransactionConflictError,
)
from journalshare.shared.field_values import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    split_field_path,
)
from journalshare.shared.result import Err, Result
from journalshare.shared.utils.datetime import utc_now
from journalshare.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentChange:
    """One committed write delivered to a change subscriber."""

    path: str
    params: dict[str, str]
    before: dict[str, Any] | None
    after: dict[str, Any] | None


ChangeHandler = Callable[[DocumentChange], Awaitable[None]]


@dataclass
class _Write:
    kind: str  # "create" | "set" | "update" | "delete"
    path: str
    data: dict[str, Any] = field(default_factory=dict)


def _resolve(value: Any, now: datetime) -> Any:
    """Replace sentinels in a literal value (set / nested map)."""
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, ArrayUnion):
        return list(value.values)
    if isinstance(value, ArrayRemove):
        return []
    if isinstance(value, dict):
        return {k: _resolve(v, now) for k, v in value.items() if v is not DELETE_FIELD}
    if isinstance(value, list):
        return [_resolve(v, now) for v in value]
    return copy.deepcopy(value)


def _apply_field(doc: dict[str, Any], path: str, value: Any, now: datetime) -> None:
    segments = split_field_path(path)
    target = doc
    for segment in segments[:-1]:
        child = target.get(segment)
        if not isinstance(child, dict):
            if value is DELETE_FIELD:
                return
            child = {}
            target[segment] = child
        target = child
    leaf = segments[-1]
    if value is DELETE_FIELD:
        target.pop(leaf, None)
    elif isinstance(value, ArrayUnion):
        current = target.get(leaf)
        items = list(current) if isinstance(current, list) else []
        items.extend(copy.deepcopy(v) for v in value.values if v not in items)
        target[leaf] = items
    elif isinstance(value, ArrayRemove):
        current = target.get(leaf)
        items = list(current) if isinstance(current, list) else []
        target[leaf] = [v for v in items if v not in value.values]
    else:
        target[leaf] = _resolve(value, now)


def _read_field(doc: dict[str, Any], path: str) -> Any:
    value: Any = doc
    for segment in split_field_path(path):
        if not isinstance(value, dict) or segment not in value:
            return None
        value = value[segment]
    return value


def _matches(doc: dict[str, Any], field_name: str, op: str, expected: Any) -> bool:
    actual = _read_field(doc, field_name)
    if op == "==":
        return actual == expected
    if op in ("array-contains", "array_contains"):
        return isinstance(actual, list) and expected in actual
    if op == "in":
        return actual in expected
    raise ValueError(f"Unsupported query operator for memory store: {op!r}")


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    parts = []
    for segment in pattern.strip("/").split("/"):
        if segment.startswith("{") and segment.endswith("}"):
            parts.append(f"(?P<{segment[1:-1]}>[^/]+)")
        else:
            parts.append(re.escape(segment))
    return re.compile("^" + "/".join(parts) + "$")


class MemoryDocumentSnapshot:
    def __init__(self, id_: str, data: dict[str, Any]):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


class MemoryDocumentReference:
    def __init__(self, store: InMemoryDocumentStore, path: str):
        self._store = store
        self._path = path.strip("/")

    @property
    def id(self) -> str:
        return self._path.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        return self._path

    def collection(self, collection_id: str) -> MemoryCollectionReference:
        return MemoryCollectionReference(self._store, f"{self._path}/{collection_id}")

    async def get(self) -> MemoryDocumentSnapshot | None:
        return self._store._snapshot(self._path)

    async def create(self, data: dict[str, Any]) -> None:
        await self._store._commit([_Write("create", self._path, data)], {})

    async def set(self, data: dict[str, Any]) -> None:
        await self._store._commit([_Write("set", self._path, data)], {})

    async def update(self, fields: dict[str, Any]) -> None:
        await self._store._commit([_Write("update", self._path, fields)], {})

    async def delete(self) -> None:
        await self._store._commit([_Write("delete", self._path)], {})


class _MemoryQuery:
    def __init__(self, store: InMemoryDocumentStore, collection_path: str):
        self._store = store
        self._collection_path = collection_path
        self._filters: list[tuple[str, str, Any]] = []
        self._limit: int | None = None

    def where(self, field_name: str, op: str, value: Any) -> _MemoryQuery:
        self._filters.append((field_name, op, value))
        return self

    def limit(self, n: int) -> _MemoryQuery:
        self._limit = n
        return self

    async def stream(self) -> AsyncIterator[MemoryDocumentSnapshot]:
        count = 0
        for path in sorted(self._store._docs):
            parent, _, doc_id = path.rpartition("/")
            if parent != self._collection_path:
                continue
            data = self._store._docs[path]
            if all(_matches(data, f, op, v) for f, op, v in self._filters):
                yield MemoryDocumentSnapshot(doc_id, copy.deepcopy(data))
                count += 1
                if self._limit is not None and count >= self._limit:
                    return


class MemoryCollectionReference:
    def __init__(self, store: InMemoryDocumentStore, path: str):
        self._store = store
        self._path = path.strip("/")

    @property
    def path(self) -> str:
        return self._path

    def document(self, document_id: str | None = None) -> MemoryDocumentReference:
        return MemoryDocumentReference(self._store, f"{self._path}/{document_id or generate_cuid()}")

    def where(self, field_name: str, op: str, value: Any) -> _MemoryQuery:
        return _MemoryQuery(self._store, self._path).where(field_name, op, value)

    def limit(self, n: int) -> _MemoryQuery:
        return _MemoryQuery(self._store, self._path).limit(n)

    def stream(self) -> AsyncIterator[MemoryDocumentSnapshot]:
        return _MemoryQuery(self._store, self._path).stream()


class MemoryTransaction:
    def __init__(self, store: InMemoryDocumentStore):
        self._store = store
        self.reads: dict[str, int] = {}
        self.writes: list[_Write] = []

    async def get(self, ref: MemoryDocumentReference) -> MemoryDocumentSnapshot | None:
        self.reads.setdefault(ref.path, self._store._versions.get(ref.path, 0))
        # Yield so concurrent transactions interleave between read and commit.
        await asyncio.sleep(0)
        return self._store._snapshot(ref.path)

    def create(self, ref: MemoryDocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(_Write("create", ref.path, data))

    def set(self, ref: MemoryDocumentReference, data: dict[str, Any]) -> None:
        self.writes.append(_Write("set", ref.path, data))

    def update(self, ref: MemoryDocumentReference, fields: dict[str, Any]) -> None:
        self.writes.append(_Write("update", ref.path, fields))


class InMemoryDocumentStore:
    """Transactional in-process document store."""

    def __init__(self, *, max_attempts: int = 5) -> None:
        self.max_attempts = max_attempts
        self._docs: dict[str, dict[str, Any]] = {}
        self._versions: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._subscribers: list[tuple[re.Pattern[str], ChangeHandler]] = []
        self._pending: set[asyncio.Task] = set()

    def collection(self, path: str) -> MemoryCollectionReference:
        return MemoryCollectionReference(self, path)

    def document(self, path: str) -> MemoryDocumentReference:
        return MemoryDocumentReference(self, path)

    def _snapshot(self, path: str) -> MemoryDocumentSnapshot | None:
        data = self._docs.get(path)
        if data is None:
            return None
        return MemoryDocumentSnapshot(path.rsplit("/", 1)[-1], copy.deepcopy(data))

    async def run_transaction(
        self, body: TransactionBody, *, max_attempts: int | None = None
    ) -> Result:
        attempts = max_attempts or self.max_attempts
        for attempt in range(1, attempts + 1):
            txn = MemoryTransaction(self)
            outcome = await body(txn)
            if isinstance(outcome, Err):
                return outcome
            try:
                await self._commit(txn.writes, txn.reads)
                return outcome
            except TransactionConflictError:
                logger.debug("Transaction conflict (attempt %s/%s); retrying", attempt, attempts)
        raise TransactionAbortedException(attempts)

    async def _commit(self, writes: list[_Write], reads: dict[str, int]) -> None:
        changes: list[tuple[str, dict | None, dict | None]] = []
        async with self._lock:
            for path, version in reads.items():
                if self._versions.get(path, 0) != version:
                    raise TransactionConflictError(f"{path} changed since read")
            now = utc_now()
            staged: dict[str, dict[str, Any] | None] = {}
            for write in writes:
                current = staged[write.path] if write.path in staged else self._docs.get(write.path)
                if write.kind == "create":
                    if current is not None:
                        raise DocumentExistsError(write.path)
                    staged[write.path] = _resolve(write.data, now)
                elif write.kind == "set":
                    staged[write.path] = _resolve(write.data, now)
                elif write.kind == "update":
                    if current is None:
                        raise DocumentNotFoundError(write.path)
                    updated = copy.deepcopy(current)
                    for path, value in write.data.items():
                        _apply_field(updated, path, value, now)
                    staged[write.path] = updated
                else:
                    staged[write.path] = None
            for path, data in staged.items():
                before = self._docs.get(path)
                if data is None:
                    self._docs.pop(path, None)
                else:
                    self._docs[path] = data
                self._versions[path] = self._versions.get(path, 0) + 1
                changes.append((path, copy.deepcopy(before), copy.deepcopy(data)))
        for path, before, after in changes:
            self._publish(path, before, after)

    def on_write(self, pattern: str, handler: ChangeHandler) -> None:
        """Call handler for every committed write to a path matching pattern.

        Pattern segments in braces bind path parameters, e.g.
        'journals/{journalId}/inventory_items/{itemId}'.
        """
        self._subscribers.append((_compile_pattern(pattern), handler))

    def _publish(self, path: str, before: dict | None, after: dict | None) -> None:
        for pattern, handler in self._subscribers:
            match = pattern.match(path)
            if match is None:
                continue
            change = DocumentChange(path, match.groupdict(), before, after)
            task = asyncio.create_task(self._deliver(handler, change))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, handler: ChangeHandler, change: DocumentChange) -> None:
        try:
            await handler(change)
        except Exception:
            logger.exception("Change handler failed for %s", change.path)

    async def wait_for_triggers(self) -> None:
        """Wait until every published change (and any it caused) has been handled."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def aclose(self) -> None:
        await self.wait_for_triggers()
