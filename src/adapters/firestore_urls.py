"""URL construction and path validation for the Firebase REST APIs.

Collection names and document paths are validated before they are placed in
a URL, and every path segment is percent-encoded. The API key is only ever
attached to Identity Toolkit URLs; Firestore requests use bearer tokens.
"""

import re
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote, urlencode

from src.adapters.errors import (
    ControlCharacterError,
    EmptyInputError,
    InvalidPathShapeError,
    PathTraversalError,
    UrlInjectionError,
)

AUTH_BASE_URL = "https://www.googleapis.com/identitytoolkit/v3/relyingparty/"
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_INJECTION_CHARS = ("?", "#", "&")
_SIMPLE_FIELD_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


# ============================================================================
# Validation
# ============================================================================


def validate_collection_name(collection_name: Any) -> str:
    """Validate a collection name.

    Args:
        collection_name: Collection name (e.g. 'books').

    Returns:
        The trimmed collection name.

    Raises:
        EmptyInputError: Not a string, or blank.
        PathTraversalError: Contains '..' or '/'.
        UrlInjectionError: Contains '?', '#' or '&'.
        ControlCharacterError: Contains ASCII control characters.
    """
    trimmed = _require_text(collection_name, "Collection name")

    if ".." in trimmed or "/" in trimmed:
        raise PathTraversalError(
            "Collection name cannot contain path separators or traversal sequences",
            collection_name,
        )
    _check_unsafe_characters(trimmed, "Collection name", collection_name)
    return trimmed


def validate_document_path(document_path: Any) -> str:
    """Validate a document path.

    Args:
        document_path: 'collection/doc' or 'collection/doc/subcollection/doc'...

    Returns:
        The trimmed document path.

    Raises:
        EmptyInputError: Not a string, or blank.
        PathTraversalError: Contains '..'.
        UrlInjectionError: Contains '?', '#' or '&'.
        ControlCharacterError: Contains ASCII control characters.
        InvalidPathShapeError: Odd segment count, or an empty segment.
    """
    trimmed = _require_text(document_path, "Document path")

    if ".." in trimmed:
        raise PathTraversalError(
            "Document path cannot contain path traversal sequences", document_path
        )
    _check_unsafe_characters(trimmed, "Document path", document_path)

    segments = trimmed.split("/")
    if len(segments) < 2 or len(segments) % 2 != 0:
        raise InvalidPathShapeError(
            "Document path must follow the pattern: "
            "collection/document[/subcollection/subdocument]...",
            document_path,
        )
    if any(not segment.strip() for segment in segments):
        raise InvalidPathShapeError(
            "Document path cannot contain empty segments", document_path
        )
    return trimmed


def validate_document_id(document_id: Any) -> str:
    """Validate a caller-supplied document ID (same rules as a collection name)."""
    try:
        return validate_collection_name(document_id)
    except EmptyInputError as e:
        raise EmptyInputError(
            "Document ID must be a non-empty string", document_id
        ) from e


def _require_text(value: Any, label: str) -> str:
    if not value or not isinstance(value, str):
        raise EmptyInputError(f"{label} must be a non-empty string", value)
    trimmed = value.strip()
    if not trimmed:
        raise EmptyInputError(f"{label} cannot be empty", value)
    return trimmed


def _check_unsafe_characters(trimmed: str, label: str, original: str) -> None:
    # str.strip() also removes \x1c-\x1f, so control characters are checked
    # on the untrimmed value
    if any(char in trimmed for char in _INJECTION_CHARS):
        raise UrlInjectionError(
            f"{label} cannot contain URL query or fragment characters", original
        )
    if _CONTROL_CHARS.search(original):
        raise ControlCharacterError(
            f"{label} cannot contain control characters", original
        )


# ============================================================================
# URL building
# ============================================================================


def build_auth_url(endpoint: str, api_key: str) -> str:
    """Build an Identity Toolkit URL.

    Args:
        endpoint: API method (e.g. 'getAccountInfo').
        api_key: Firebase Web API key, sent as the 'key' query parameter.

    Returns:
        Absolute URL.
    """
    return f"{AUTH_BASE_URL}{quote(endpoint, safe='')}?{urlencode({'key': api_key})}"


def build_documents_base_url(project_id: str) -> str:
    """Root of the default database's documents resource."""
    return (
        f"{FIRESTORE_BASE_URL}/projects/{quote(project_id, safe='')}"
        "/databases/(default)/documents/"
    )


def build_firestore_url(project_id: str, path: str, is_collection: bool = True) -> str:
    """Build a Firestore document or collection URL.

    Args:
        project_id: Firebase project ID.
        path: Collection name or document path.
        is_collection: Validate ``path`` as a collection name (True) or a
            document path (False).

    Returns:
        Absolute URL, without the API key.

    Raises:
        FirestorePathError: If ``path`` fails validation.
    """
    if is_collection:
        valid_path = validate_collection_name(path)
    else:
        valid_path = validate_document_path(path)

    encoded = "/".join(quote(segment, safe="") for segment in valid_path.split("/"))
    return build_documents_base_url(project_id) + encoded


def quote_field_path(field_name: str) -> str:
    """Quote a top-level field name for use in a field path."""
    if _SIMPLE_FIELD_NAME.fullmatch(field_name):
        return field_name
    escaped = field_name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def update_mask_params(field_names: Iterable[str]) -> list[tuple[str, str]]:
    """Query parameters limiting a PATCH to the given top-level fields."""
    return [("updateMask.fieldPaths", quote_field_path(name)) for name in field_names]
