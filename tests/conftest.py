"""Pytest configuration and shared fixtures."""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from tests.utils import RecordingTransport

FIREBASE_CONFIG = {"apiKey": "test-api-key", "projectId": "test-project"}


@pytest.fixture(autouse=True)
def clear_firebase_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host Firebase variables out of Settings."""
    monkeypatch.delenv("FIREBASE_CONFIG", raising=False)
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)


@pytest.fixture
def firebase_config() -> dict[str, str]:
    """Firebase config mapping."""
    return dict(FIREBASE_CONFIG)


@pytest.fixture
def server_env() -> dict[str, str]:
    """Server environment as supplied by the caller."""
    return {
        "FIREBASE_CONFIG": json.dumps(
            {"apiKey": "test-api-key", "authDomain": "test-project.firebaseapp.com"}
        ),
        "FIREBASE_PROJECT_ID": "test-project",
    }


@pytest.fixture
def mock_logger() -> MagicMock:
    """Mock structlog logger."""
    return MagicMock()


@pytest.fixture
def transport() -> RecordingTransport:
    """Recording HTTP transport."""
    return RecordingTransport()


@pytest.fixture
def http_client(transport: RecordingTransport) -> httpx.AsyncClient:
    """httpx client backed by the recording transport."""
    return httpx.AsyncClient(transport=httpx.MockTransport(transport.handler))


@pytest.fixture
def make_client(
    firebase_config: dict[str, str],
    http_client: httpx.AsyncClient,
    mock_logger: MagicMock,
) -> Callable[..., Any]:
    """Factory for FirebaseRestClient wired to the recording transport."""
    from src.adapters.firebase_rest_client import FirebaseRestClient

    def _make(id_token: str | None = None) -> FirebaseRestClient:
        return FirebaseRestClient(
            firebase_config, id_token, http_client=http_client, logger=mock_logger
        )

    return _make


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """Firestore REST document as returned by the API."""
    return {
        "name": "projects/test-project/databases/(default)/documents/books/book123",
        "fields": {
            "title": {"stringValue": "T"},
            "year": {"integerValue": "2023"},
        },
        "createTime": "2025-01-15T09:00:00.000000Z",
        "updateTime": "2025-01-15T09:00:00.000000Z",
    }
