"""Application ports implemented by infrastructure."""

from journalshare.application.interfaces.store import (
    ICollectionReference,
    IDocumentReference,
    IDocumentSnapshot,
    IDocumentStore,
    IQuery,
    ITransaction,
    TransactionBody,
)

__all__ = [
    "ICollectionReference",
    "IDocumentReference",
    "IDocumentSnapshot",
    "IDocumentStore",
    "IQuery",
    "ITransaction",
    "TransactionBody",
]
