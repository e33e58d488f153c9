"""Encode/decode Python values to/from Firestore REST API 'fields' format, and build commit writes."""

from __future__ import annotations

import base64
from datetime import UTC, datetime
from typing import Any

from journalshare.shared.field_values import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    field_path,
    is_transform,
    split_field_path,
)


def _encode_value(v: Any) -> dict:
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        if v.tzinfo is not None:
            v = v.astimezone(UTC)
        return {"timestampValue": v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [_encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: _encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_document(data: dict[str, Any]) -> dict:
    """Convert a Python dict to Firestore REST Document.fields format."""
    return {"fields": {k: _encode_value(v) for k, v in data.items()}}


def _decode_value(obj: dict) -> Any:
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return datetime.fromisoformat(obj["timestampValue"].replace("Z", "+00:00"))
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [_decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: _decode_value(x) for k, x in fields.items()}
    return None


def decode_document(document: dict | None) -> dict:
    """Convert a Firestore REST Document (with 'fields') to a Python dict."""
    if not document:
        return {}
    return {k: _decode_value(v) for k, v in (document.get("fields") or {}).items()}


def _transform(path: str, value: Any) -> dict:
    if value is SERVER_TIMESTAMP:
        return {"fieldPath": path, "setToServerValue": "REQUEST_TIME"}
    if isinstance(value, ArrayUnion):
        return {
            "fieldPath": path,
            "appendMissingElements": {"values": [_encode_value(x) for x in value.values]},
        }
    if isinstance(value, ArrayRemove):
        return {
            "fieldPath": path,
            "removeAllFromArray": {"values": [_encode_value(x) for x in value.values]},
        }
    raise TypeError(f"Not a field transform: {value!r}")


def _split_transforms(
    data: dict[str, Any], prefix: tuple[str, ...]
) -> tuple[dict[str, Any], list[dict]]:
    """Separate literal values from sentinels nested anywhere in a map."""
    plain: dict[str, Any] = {}
    transforms: list[dict] = []
    for key, value in data.items():
        segments = (*prefix, key)
        if value is DELETE_FIELD:
            continue
        if is_transform(value):
            transforms.append(_transform(field_path(*segments), value))
        elif isinstance(value, dict):
            nested, nested_transforms = _split_transforms(value, segments)
            plain[key] = nested
            transforms.extend(nested_transforms)
        else:
            plain[key] = value
    return plain, transforms


def build_set_write(name: str, data: dict[str, Any]) -> dict:
    """Commit write replacing the whole document."""
    plain, transforms = _split_transforms(data, ())
    write: dict[str, Any] = {"update": {"name": name, **encode_document(plain)}}
    if transforms:
        write["updateTransforms"] = transforms
    return write


def build_create_write(name: str, data: dict[str, Any]) -> dict:
    """Commit write creating the document; fails with ALREADY_EXISTS if it is present."""
    write = build_set_write(name, data)
    write["currentDocument"] = {"exists": False}
    return write


def build_update_write(name: str, fields: dict[str, Any]) -> dict:
    """Commit write touching only the given field paths; fails if the document is missing.

    Deleted paths are listed in the mask but absent from the body, which
    is how the REST API removes a field.
    """
    nested: dict[str, Any] = {}
    mask: list[str] = []
    transforms: list[dict] = []
    for path, value in fields.items():
        segments = split_field_path(path)
        canonical = field_path(*segments)
        if is_transform(value):
            transforms.append(_transform(canonical, value))
            continue
        mask.append(canonical)
        if value is DELETE_FIELD:
            continue
        if isinstance(value, dict):
            value, nested_transforms = _split_transforms(value, tuple(segments))
            transforms.extend(nested_transforms)
        target = nested
        for segment in segments[:-1]:
            target = target.setdefault(segment, {})
        target[segments[-1]] = value
    write: dict[str, Any] = {
        "update": {"name": name, **encode_document(nested)},
        "updateMask": {"fieldPaths": mask},
        "currentDocument": {"exists": True},
    }
    if transforms:
        write["updateTransforms"] = transforms
    return write


def build_delete_write(name: str) -> dict:
    return {"delete": name}
