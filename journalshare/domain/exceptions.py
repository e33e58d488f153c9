"""Domain exceptions for journalshare.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers by error_code.
"""

from typing import Any


class JournalShareException(Exception):
    """Base exception for all journalshare application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable body for API error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(JournalShareException):
    """Raised when input validation fails (e.g. unknown entry type or bad name)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "INVALID_ARGUMENT", details)


class SchemaValidationException(JournalShareException):
    """Raised when a details payload fails its per-type schema.

    The message lists every violated field path with its reason, one per line.
    """

    def __init__(self, schema_type: str, validation_errors: list[str]) -> None:
        """Initialize with schema type and validation errors.

        Args:
            schema_type: Journal or entry type whose schema was applied.
            validation_errors: One "path: reason" string per violation.
        """
        message = f"Invalid details for {schema_type}:\n" + "\n".join(validation_errors)
        super().__init__(
            message,
            "SCHEMA_VALIDATION_ERROR",
            {"schema_type": schema_type, "errors": validation_errors},
        )


class AuthenticationException(JournalShareException):
    """Raised when no verified principal identity is available."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, "UNAUTHENTICATED")


class AuthorizationException(JournalShareException):
    """Raised when the principal's role is insufficient or the change would orphan the journal."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional resource type (e.g. 'journal', 'entry').
            action: Optional action that was attempted (e.g. 'share', 'delete').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(JournalShareException):
    """Raised when a requested journal, entry or invitation does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'journal', 'inventory').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class FailedPreconditionException(JournalShareException):
    """Raised when document state blocks the operation (e.g. estimate not accepted)."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "FAILED_PRECONDITION", details)
