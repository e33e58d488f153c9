"""Validates journal and entry details against the schema of their type."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from journalshare.domain.enums import EntryType, JournalType
from journalshare.domain.exceptions import SchemaValidationException, ValidationException
from journalshare.schemas.details import (
    BusinessDetails,
    BusinessDetailsUpdate,
    CashflowDetails,
    EstimateDetails,
    InventoryItemDetails,
)

_ENTRY_DETAIL_SCHEMAS: dict[EntryType, type[BaseModel]] = {
    EntryType.CASHFLOW: CashflowDetails,
    EntryType.INVENTORY: InventoryItemDetails,
    EntryType.ESTIMATE: EstimateDetails,
}

_JOURNAL_DETAIL_SCHEMAS: dict[JournalType, type[BaseModel]] = {
    JournalType.BUSINESS: BusinessDetails,
}

_JOURNAL_UPDATE_SCHEMAS: dict[JournalType, type[BaseModel]] = {
    JournalType.BUSINESS: BusinessDetailsUpdate,
}


def _format_errors(exc: ValidationError) -> list[str]:
    """One 'path: reason' line per violation."""
    lines = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "(root)"
        lines.append(f"{path}: {error['msg']}")
    return lines


def _validate(model: type[BaseModel], schema_type: str, details: Any) -> dict[str, Any]:
    try:
        validated = model.model_validate(details if details is not None else {})
    except ValidationError as e:
        raise SchemaValidationException(schema_type, _format_errors(e)) from e
    return validated.model_dump(by_alias=True, exclude_unset=True)


def resolve_entry_type(value: EntryType | str) -> EntryType:
    """Return the EntryType for value; InvalidArgument for unconfigured types."""
    try:
        return EntryType(value)
    except ValueError as e:
        raise ValidationException(
            f"Invalid entry type: {value!r}. Allowed: {', '.join(EntryType.values())}",
            field="entryType",
        ) from e


def resolve_journal_type(value: JournalType | str) -> JournalType:
    try:
        return JournalType(value)
    except ValueError as e:
        raise ValidationException(
            f"Invalid journal type: {value!r}. Allowed: {', '.join(t.value for t in JournalType)}",
            field="journalType",
        ) from e


class DetailsValidator:
    """Selects the detail schema by type and returns the cleaned details map.

    Raises SchemaValidationException listing every violated field path.
    """

    def validate_entry(self, entry_type: EntryType, details: Any) -> dict[str, Any]:
        return _validate(_ENTRY_DETAIL_SCHEMAS[entry_type], entry_type.value, details)

    def validate_journal(self, journal_type: JournalType, details: Any) -> dict[str, Any]:
        return _validate(_JOURNAL_DETAIL_SCHEMAS[journal_type], journal_type.value, details)

    def validate_journal_update(self, journal_type: JournalType, details: Any) -> dict[str, Any]:
        """Partial details: only the provided fields are validated and returned."""
        return _validate(_JOURNAL_UPDATE_SCHEMAS[journal_type], journal_type.value, details)
