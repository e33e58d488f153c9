"""Document store interfaces (ports) for the application layer.

Protocols define the contract both store backends fulfill (DIP): the
Firestore REST client and the in-memory store. Field updates take a
mapping of field path -> value, where values may be the sentinels in
journalshare.shared.field_values.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Protocol, TypeVar

from journalshare.shared.result import Result

T = TypeVar("T")


class IDocumentSnapshot(Protocol):
    """Document id and decoded data at read time."""

    id: str

    def to_dict(self) -> dict[str, Any]:
        """Return the document fields."""


class IQuery(Protocol):
    def where(self, field: str, op: str, value: Any) -> "IQuery":
        """Add a filter (op: '==', 'array-contains', 'in')."""

    def limit(self, n: int) -> "IQuery":
        """Cap the number of results."""

    def stream(self) -> AsyncIterator[IDocumentSnapshot]:
        """Execute and yield matching documents."""


class IDocumentReference(Protocol):
    """Reference to a single document by path."""

    @property
    def id(self) -> str:
        """Last path segment."""

    @property
    def path(self) -> str:
        """Slash-separated path relative to the database root."""

    def collection(self, collection_id: str) -> "ICollectionReference":
        """Sub-collection under this document."""

    async def get(self) -> IDocumentSnapshot | None:
        """Fetch the document; None if it does not exist."""

    async def create(self, data: dict[str, Any]) -> None:
        """Create the document; raises DocumentExistsError if it already exists."""

    async def set(self, data: dict[str, Any]) -> None:
        """Create or fully replace the document."""

    async def update(self, fields: dict[str, Any]) -> None:
        """Apply field-scoped mutations; raises DocumentNotFoundError if missing."""

    async def delete(self) -> None:
        """Delete the document (idempotent)."""


class ICollectionReference(IQuery, Protocol):
    @property
    def path(self) -> str:
        """Slash-separated collection path."""

    def document(self, document_id: str | None = None) -> IDocumentReference:
        """Reference a document; a new id is generated when document_id is None."""


class ITransaction(Protocol):
    """Reads see one consistent snapshot; writes are buffered and committed atomically."""

    async def get(self, ref: IDocumentReference) -> IDocumentSnapshot | None:
        """Read a document inside the transaction."""

    def create(self, ref: IDocumentReference, data: dict[str, Any]) -> None:
        """Buffer a create (document must not exist at commit)."""

    def set(self, ref: IDocumentReference, data: dict[str, Any]) -> None:
        """Buffer a full replace."""

    def update(self, ref: IDocumentReference, fields: dict[str, Any]) -> None:
        """Buffer field-scoped mutations (document must exist at commit)."""


TransactionBody = Callable[[ITransaction], Awaitable[Result[T]]]


class IDocumentStore(Protocol):
    """Transactional document store (external collaborator)."""

    def collection(self, path: str) -> ICollectionReference:
        """Collection by slash-separated path."""

    def document(self, path: str) -> IDocumentReference:
        """Document by slash-separated path."""

    async def run_transaction(
        self, body: TransactionBody[T], *, max_attempts: int | None = None
    ) -> Result[T]:
        """Run body with optimistic retries.

        The body may run several times and must have no side effects other
        than buffered writes. Ok commits, Err rolls back and is returned
        as-is. Raises TransactionAbortedException when every attempt conflicts.
        """
