"""Tests for create_firebase_rest_client factory."""

import json
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from src.adapters.errors import (
    ConfigurationError,
    InvalidConfigJsonError,
    MissingApiKeyError,
    MissingConfigError,
    MissingProjectIdError,
    NoUserFoundError,
    TokenVerificationError,
)
from src.adapters.firebase_rest_client import (
    FirebaseRestClient,
    create_firebase_rest_client,
)
from src.config.settings import Settings
from tests.utils import RecordingTransport


class TestCreateFirebaseRestClient:
    """Test the client factory."""

    @pytest.mark.asyncio
    async def test_creates_public_client(
        self,
        server_env: dict[str, str],
        http_client: httpx.AsyncClient,
        transport: RecordingTransport,
    ) -> None:
        client = await create_firebase_rest_client(server_env, http_client=http_client)

        assert isinstance(client, FirebaseRestClient)
        assert client.config.api_key == "test-api-key"
        assert client.config.project_id == "test-project"
        assert client.is_authenticated is False
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_verifies_token_before_returning(
        self,
        server_env: dict[str, str],
        http_client: httpx.AsyncClient,
        transport: RecordingTransport,
    ) -> None:
        transport.queue(200, {"users": [{"localId": "u1"}]})

        client = await create_firebase_rest_client(
            server_env, "id-token", http_client=http_client
        )

        assert client.get_uid() == "u1"
        assert transport.last_json() == {"idToken": "id-token"}

    @pytest.mark.asyncio
    async def test_verification_failure_propagates(
        self,
        server_env: dict[str, str],
        http_client: httpx.AsyncClient,
        transport: RecordingTransport,
        mock_logger: MagicMock,
    ) -> None:
        transport.queue(400, {"error": {"message": "INVALID_ID_TOKEN"}})

        with pytest.raises(TokenVerificationError):
            await create_firebase_rest_client(
                server_env, "bad-token", http_client=http_client, logger=mock_logger
            )

        assert mock_logger.error.call_args.kwargs["action"] == "verify_token"

    @pytest.mark.asyncio
    async def test_no_user_propagates(
        self,
        server_env: dict[str, str],
        http_client: httpx.AsyncClient,
        transport: RecordingTransport,
    ) -> None:
        transport.queue(200, {"users": []})

        with pytest.raises(NoUserFoundError):
            await create_firebase_rest_client(
                server_env, "id-token", http_client=http_client
            )

    @pytest.mark.asyncio
    async def test_missing_config(self) -> None:
        with pytest.raises(
            MissingConfigError, match="FIREBASE_CONFIG environment variable is not set"
        ):
            await create_firebase_rest_client({"FIREBASE_PROJECT_ID": "p"})

    @pytest.mark.asyncio
    async def test_missing_project_id(self) -> None:
        with pytest.raises(MissingProjectIdError, match="FIREBASE_PROJECT_ID"):
            await create_firebase_rest_client(
                {"FIREBASE_CONFIG": json.dumps({"apiKey": "k"})}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["invalid-json", "{apiKey: k}", "[1, 2]", "42"])
    async def test_invalid_json(self, raw: str) -> None:
        with pytest.raises(InvalidConfigJsonError, match="invalid JSON"):
            await create_firebase_rest_client(
                {"FIREBASE_CONFIG": raw, "FIREBASE_PROJECT_ID": "p"}
            )

    @pytest.mark.asyncio
    async def test_missing_api_key(self) -> None:
        with pytest.raises(
            MissingApiKeyError, match="FIREBASE_CONFIG is missing required apiKey"
        ):
            await create_firebase_rest_client(
                {
                    "FIREBASE_CONFIG": json.dumps({"authDomain": "x"}),
                    "FIREBASE_PROJECT_ID": "p",
                }
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("server_env_value", [None, {}])
    async def test_undefined_environment(self, server_env_value: Any) -> None:
        with pytest.raises(MissingConfigError):
            await create_firebase_rest_client(server_env_value)

    @pytest.mark.asyncio
    async def test_configuration_errors_share_base_class(self) -> None:
        with pytest.raises(ConfigurationError):
            await create_firebase_rest_client({})

    @pytest.mark.asyncio
    async def test_accepts_settings(self, http_client: httpx.AsyncClient) -> None:
        settings = Settings(
            _env_file=None,
            FIREBASE_CONFIG=json.dumps({"apiKey": "settings-key"}),
            FIREBASE_PROJECT_ID="settings-project",
        )

        client = await create_firebase_rest_client(settings, http_client=http_client)

        assert client.config.api_key == "settings-key"
        assert client.config.project_id == "settings-project"

    @pytest.mark.asyncio
    async def test_settings_timeout_applied_to_owned_client(self) -> None:
        settings = Settings(
            _env_file=None,
            FIREBASE_CONFIG=json.dumps({"apiKey": "k"}),
            FIREBASE_PROJECT_ID="p",
            HTTP_TIMEOUT_SECONDS=3.5,
        )

        async with await create_firebase_rest_client(settings) as client:
            assert client._http.timeout.read == 3.5

    @pytest.mark.asyncio
    async def test_creates_and_owns_default_http_client(self) -> None:
        client = await create_firebase_rest_client(
            {"FIREBASE_CONFIG": json.dumps({"apiKey": "k"}), "FIREBASE_PROJECT_ID": "p"}
        )

        await client.aclose()

        assert client._http.is_closed is True

    @pytest.mark.asyncio
    async def test_injected_http_client_not_owned(
        self, server_env: dict[str, str], http_client: httpx.AsyncClient
    ) -> None:
        client = await create_firebase_rest_client(server_env, http_client=http_client)

        await client.aclose()

        assert http_client.is_closed is False
