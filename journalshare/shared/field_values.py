"""Field-level mutation sentinels and field-path helpers.

Both store backends accept update mappings of ``field path -> value``
where the value may be one of the sentinels below. Field paths use
Firestore syntax: segments joined by '.', with segments that are not
plain identifiers (emails, ids with '-') quoted in backticks.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

_SIMPLE_SEGMENT = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")


class _Sentinel:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


DELETE_FIELD = _Sentinel("DELETE_FIELD")
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")


class ArrayUnion:
    """Append each value not already present in the array field."""

    def __init__(self, values: Iterable[Any]) -> None:
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayUnion({self.values!r})"


class ArrayRemove:
    """Remove every occurrence of each value from the array field."""

    def __init__(self, values: Iterable[Any]) -> None:
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayRemove({self.values!r})"


def is_transform(value: Any) -> bool:
    """True for sentinels computed by the store rather than written literally."""
    return value is SERVER_TIMESTAMP or isinstance(value, (ArrayUnion, ArrayRemove))


def _quote_segment(segment: str) -> str:
    if _SIMPLE_SEGMENT.match(segment):
        return segment
    escaped = segment.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def field_path(*segments: str) -> str:
    """Join segments into a field path, quoting the ones that need it.

    >>> field_path("pendingAccess", "bob@x.com")
    'pendingAccess.`bob@x.com`'
    """
    if not segments or any(not s for s in segments):
        raise ValueError("Field path segments must be non-empty")
    return ".".join(_quote_segment(s) for s in segments)


def split_field_path(path: str) -> list[str]:
    """Split a field path into raw segments (inverse of field_path)."""
    segments: list[str] = []
    current: list[str] = []
    quoted = False
    i = 0
    while i < len(path):
        ch = path[i]
        if quoted:
            if ch == "\\" and i + 1 < len(path):
                current.append(path[i + 1])
                i += 2
                continue
            if ch == "`":
                quoted = False
            else:
                current.append(ch)
        elif ch == "`":
            quoted = True
        elif ch == ".":
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    if quoted:
        raise ValueError(f"Unterminated backtick in field path: {path!r}")
    segments.append("".join(current))
    if any(not s for s in segments):
        raise ValueError(f"Empty segment in field path: {path!r}")
    return segments
