"""Encode/decode Python values to/from the Firestore REST value format.

Every field value on the wire is a single-key wrapper naming its type, e.g.
``{"stringValue": "x"}`` or ``{"arrayValue": {"values": [...]}}``.

Lossy cases:
- None and a missing value both become ``nullValue``.
- Unsupported types become the string ``"unsupported_type"``.
- Integral floats become ``integerValue`` and decode back as ``int``.
  This includes floats too large to be a 64-bit integer, which Firestore
  will reject.
"""

import base64
import math
from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from src.models.firebase import FirestoreDocument

UNSUPPORTED_TYPE = "unsupported_type"

WIRE_VALUE_KEYS = frozenset(
    {
        "nullValue",
        "booleanValue",
        "integerValue",
        "doubleValue",
        "timestampValue",
        "stringValue",
        "bytesValue",
        "referenceValue",
        "geoPointValue",
        "arrayValue",
        "mapValue",
    }
)

# proto3 JSON spelling of non-finite doubles
_NON_FINITE = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}


# ============================================================================
# Encode
# ============================================================================


def encode_value(value: Any) -> dict[str, Any]:
    """Convert a Python value to a Firestore wire value.

    Args:
        value: Any Python value. Unsupported types do not raise.

    Returns:
        Wire value with exactly one type key.
    """
    if value is None:
        return {"nullValue": None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, Enum):
        return encode_value(value.value)
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return _encode_float(value)
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, date):
        midnight = datetime.combine(value, datetime.min.time())
        return {"timestampValue": format_timestamp(midnight)}
    if isinstance(value, (bytes, bytearray)):
        return {"bytesValue": base64.standard_b64encode(value).decode("ascii")}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": _encode_fields(value)}}
    return {"stringValue": UNSUPPORTED_TYPE}


def encode_document(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a Python mapping to a Firestore document body."""
    return {"fields": _encode_fields(data)}


def _encode_fields(data: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    return {str(key): encode_value(item) for key, item in data.items()}


def _encode_float(value: float) -> dict[str, Any]:
    if not math.isfinite(value):
        if math.isnan(value):
            return {"doubleValue": "NaN"}
        return {"doubleValue": "Infinity" if value > 0 else "-Infinity"}
    if value.is_integer():
        return {"integerValue": str(int(value))}
    return {"doubleValue": value}


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    else:
        value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


# ============================================================================
# Decode
# ============================================================================


def decode_value(wire: Mapping[str, Any] | None) -> Any:
    """Convert a Firestore wire value to a Python value.

    Args:
        wire: Wire value. None or an unrecognised wrapper decodes to None.

    Returns:
        Python value.
    """
    if not wire:
        return None
    if "nullValue" in wire:
        return None
    if "booleanValue" in wire:
        return wire["booleanValue"]
    if "integerValue" in wire:
        return int(wire["integerValue"])
    if "doubleValue" in wire:
        return _decode_double(wire["doubleValue"])
    if "timestampValue" in wire:
        return parse_timestamp(wire["timestampValue"])
    if "stringValue" in wire:
        return wire["stringValue"]
    if "bytesValue" in wire:
        return base64.standard_b64decode(wire["bytesValue"])
    if "referenceValue" in wire:
        return wire["referenceValue"]
    if "geoPointValue" in wire:
        point = wire["geoPointValue"] or {}
        return {
            "latitude": point.get("latitude", 0.0),
            "longitude": point.get("longitude", 0.0),
        }
    if "arrayValue" in wire:
        values = (wire["arrayValue"] or {}).get("values") or []
        return [decode_value(item) for item in values]
    if "mapValue" in wire:
        return decode_fields((wire["mapValue"] or {}).get("fields"))
    return None


def decode_fields(fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """Convert a Firestore ``fields`` map to a Python dict."""
    if not fields:
        return {}
    return {key: decode_value(item) for key, item in fields.items()}


def decode_document(document: Mapping[str, Any] | FirestoreDocument) -> dict[str, Any]:
    """Convert a Firestore REST document to a Python dict.

    The document ID from the resource name is added as ``id`` and takes
    precedence over a stored field of the same name.

    Args:
        document: Raw document JSON or a parsed FirestoreDocument.

    Returns:
        Decoded field values, plus ``id`` when the document has a name.
    """
    if not isinstance(document, FirestoreDocument):
        document = FirestoreDocument.model_validate(document)

    data = decode_fields(document.fields)
    if document.id is not None:
        data["id"] = document.id
    return data


def _decode_double(value: Any) -> float:
    if isinstance(value, str) and value in _NON_FINITE:
        return _NON_FINITE[value]
    return float(value)


def parse_timestamp(value: str) -> datetime:
    """Parse a Firestore timestamp (RFC 3339, UTC 'Z') into an aware datetime.

    Firestore returns up to nanosecond precision; fromisoformat truncates
    digits beyond microseconds.
    """
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(UTC)


# ============================================================================
# Input shape
# ============================================================================


def is_wire_value(value: Any) -> bool:
    """Check if a value is a single-key wire value wrapper."""
    return (
        isinstance(value, Mapping)
        and len(value) == 1
        and next(iter(value)) in WIRE_VALUE_KEYS
    )


def is_wire_document(data: Any) -> bool:
    """Check if data is an already-encoded document body.

    True only for a mapping whose single key is ``fields`` and whose field
    values are all wire value wrappers. ``{"fields": {}}`` counts as encoded.
    """
    if not isinstance(data, Mapping) or set(data) != {"fields"}:
        return False
    fields = data["fields"]
    if not isinstance(fields, Mapping):
        return False
    return all(is_wire_value(item) for item in fields.values())


def prepare_document_body(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a request body for create/update.

    Pre-encoded documents are sent as-is; anything else is encoded.
    """
    if is_wire_document(data):
        return {"fields": dict(data["fields"])}
    return encode_document(data)
