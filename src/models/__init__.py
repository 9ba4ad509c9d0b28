"""Models for the Firebase REST client.

This module exports the Pydantic models and value types used across the
adapters and repositories.
"""

from src.models.firebase import AuthMode, AuthState, FirebaseConfig, FirestoreDocument

__all__ = [
    "AuthMode",
    "AuthState",
    "FirebaseConfig",
    "FirestoreDocument",
]
