"""Repository layer for Firestore data access.

This module exports the async base repository for typed persistence.
"""

from src.repositories.base import BaseRepository

__all__ = [
    "BaseRepository",
]
