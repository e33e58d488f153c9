"""In-process document store backend."""

from journalshare.infrastructure.memory.store import DocumentChange, InMemoryDocumentStore

__all__ = ["DocumentChange", "InMemoryDocumentStore"]
