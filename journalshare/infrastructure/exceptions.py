"""Infrastructure exceptions for document store operations.

Store errors extend JournalShareException so presentation can map them
to HTTP responses consistently.
"""

from journalshare.domain.exceptions import JournalShareException


class StoreException(JournalShareException):
    """Base exception for document store operations."""


class DocumentExistsError(StoreException):
    """Create was rejected because the document ID already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Document already exists: {path}",
            "ALREADY_EXISTS",
            {"path": path},
        )


class DocumentNotFoundError(StoreException):
    """Field update targeted a document that does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Document not found: {path}",
            "NOT_FOUND",
            {"path": path},
        )


class TransactionConflictError(StoreException):
    """A concurrent commit invalidated this transaction's reads; the attempt must be retried."""

    def __init__(self, reason: str = "transaction contention") -> None:
        super().__init__(
            f"Transaction conflict: {reason}",
            "ABORTED",
            {"reason": reason},
        )


class TransactionAbortedException(StoreException):
    """Transaction still conflicted after the retry budget was spent."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            "The document was modified concurrently; retry the request.",
            "ABORTED",
            {"attempts": attempts},
        )


class StoreUnavailableException(StoreException):
    """Document store is not configured or not reachable."""

    def __init__(self, reason: str = "Document store unavailable") -> None:
        super().__init__(reason, "UNAVAILABLE", {})
