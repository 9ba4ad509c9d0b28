"""Firebase REST client exceptions.

Four families, each with one subclass per failure kind so callers can match
on the class instead of parsing messages:

- ConfigurationError: missing or invalid configuration (construction time)
- FirestorePathError: malformed collection name or document path
- AuthError: token verification and user id access
- OperationFailedError: non-2xx response from a document operation
"""

import json
from typing import Any


class FirebaseRestError(Exception):
    """Base exception for all Firebase REST client errors."""


# ============================================================================
# Configuration
# ============================================================================


class ConfigurationError(FirebaseRestError):
    """Missing or invalid configuration."""


class MissingConfigError(ConfigurationError):
    """FIREBASE_CONFIG (or the config object itself) is absent."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "FIREBASE_CONFIG environment variable is not set. "
            "Please ensure it is configured for Firebase functionality."
        )


class IncompleteConfigError(ConfigurationError):
    """Config object lacks apiKey or projectId."""

    def __init__(self) -> None:
        super().__init__(
            "Firebase configuration is incomplete. "
            "Both apiKey and projectId are required."
        )


class MissingProjectIdError(ConfigurationError):
    """FIREBASE_PROJECT_ID is absent."""

    def __init__(self) -> None:
        super().__init__(
            "FIREBASE_PROJECT_ID environment variable is not set. "
            "Please ensure it is configured for Firebase functionality."
        )


class InvalidConfigJsonError(ConfigurationError):
    """FIREBASE_CONFIG is not a JSON object."""

    def __init__(self) -> None:
        super().__init__(
            "FIREBASE_CONFIG environment variable contains invalid JSON. "
            "Please ensure it is properly formatted."
        )


class MissingApiKeyError(ConfigurationError):
    """Parsed FIREBASE_CONFIG has no apiKey."""

    def __init__(self) -> None:
        super().__init__("FIREBASE_CONFIG is missing required apiKey property.")


# ============================================================================
# Path validation
# ============================================================================


class FirestorePathError(FirebaseRestError, ValueError):
    """Invalid collection name or document path."""

    def __init__(self, message: str, value: Any = None) -> None:
        self.value = value
        super().__init__(message)


class EmptyInputError(FirestorePathError):
    """Name or path is empty, blank, or not a string."""


class PathTraversalError(FirestorePathError):
    """Name or path contains a traversal sequence or a stray separator."""


class UrlInjectionError(FirestorePathError):
    """Name or path contains URL query or fragment characters."""


class ControlCharacterError(FirestorePathError):
    """Name or path contains ASCII control characters."""


class InvalidPathShapeError(FirestorePathError):
    """Document path is not collection/document[/collection/document]..."""


# ============================================================================
# Authentication
# ============================================================================


class AuthError(FirebaseRestError):
    """Token verification or user id failure."""


class TokenVerificationError(AuthError):
    """Identity Toolkit rejected the token."""

    def __init__(self, status_code: int, response_data: Any) -> None:
        self.status_code = status_code
        self.response_data = response_data
        super().__init__(
            f"Failed to verify ID token: {serialize_body(response_data)}"
        )


class NoUserFoundError(AuthError):
    """Token was accepted but resolved to no user."""

    def __init__(self) -> None:
        super().__init__("No user found for the provided token")


class TokenNotValidatedError(AuthError):
    """User id was read before a token was verified."""

    def __init__(self) -> None:
        super().__init__(
            "ID token has not been validated yet. Call validate_token() first."
        )


class TokenAlreadyVerifiedError(AuthError):
    """A second verification was attempted on the same client."""

    def __init__(self) -> None:
        super().__init__(
            "ID token has already been verified for this client. "
            "Create a new client to verify a different token."
        )


# ============================================================================
# Operations
# ============================================================================


class OperationFailedError(FirebaseRestError):
    """Non-2xx response, or a 2xx without a JSON object, from a document operation."""

    def __init__(self, action: str, status_code: int, body: Any) -> None:
        self.action = action
        self.status_code = status_code
        self.body = body
        verb = action.replace("_", " ")
        super().__init__(f"Failed to {verb}: {serialize_body(body)}")


def serialize_body(data: Any) -> str:
    """Serialize a response body for messages and log records."""
    if isinstance(data, str):
        return data
    return json.dumps(data, default=str)
