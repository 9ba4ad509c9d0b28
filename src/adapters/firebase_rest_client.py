"""Firebase REST API client.

Talks to Firestore and the Identity Toolkit over plain HTTPS (httpx), for
environments where the Admin SDK is unavailable or too heavy. Works with any
collection; values are converted to and from Firestore's typed wire format.

Authentication is optional. Without an ID token every request is public and
access is decided by Firestore security rules. With a token, requests carry
``Authorization: Bearer <token>`` and the token can be verified once to
resolve the user ID.

Usage:
    settings = get_settings()
    async with await create_firebase_rest_client(settings, id_token) as client:
        uid = client.get_uid()
        books = await client.get_collection("books")
        created = await client.create_document("books", {"title": "T", "year": 2023})
"""

import json
from collections.abc import Mapping
from types import TracebackType
from typing import Any, NoReturn

import httpx
from pydantic import ValidationError

from src.adapters.errors import (
    IncompleteConfigError,
    InvalidConfigJsonError,
    MissingApiKeyError,
    MissingConfigError,
    MissingProjectIdError,
    NoUserFoundError,
    OperationFailedError,
    TokenAlreadyVerifiedError,
    TokenNotValidatedError,
    TokenVerificationError,
    serialize_body,
)
from src.adapters.firestore_codec import decode_document, prepare_document_body
from src.adapters.firestore_urls import (
    build_auth_url,
    build_firestore_url,
    update_mask_params,
    validate_document_id,
)
from src.config.logging import get_logger
from src.config.settings import Settings
from src.models.firebase import AuthState, FirebaseConfig

SERVICE_NAME = "firebase-restapi"


class FirebaseRestClient:
    """Async client for Firestore document CRUD and ID token verification.

    One instance per request. The user ID is resolved at most once; a
    verified client stays verified for its lifetime.
    """

    def __init__(
        self,
        config: FirebaseConfig | Mapping[str, Any] | None,
        id_token: str | None = None,
        *,
        http_client: httpx.AsyncClient,
        logger: Any,
        owns_http_client: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            config: Firebase config (apiKey and projectId required).
            id_token: Optional Firebase ID token. Empty means public access.
            http_client: httpx client used for every request.
            logger: structlog-style logger.
            owns_http_client: Close http_client in aclose().

        Raises:
            MissingConfigError: If config is None.
            IncompleteConfigError: If apiKey or projectId is missing.
        """
        if config is None:
            raise MissingConfigError(
                "Firebase configuration is required. Please ensure FIREBASE_CONFIG "
                "and FIREBASE_PROJECT_ID environment variables are set."
            )
        if not isinstance(config, FirebaseConfig):
            try:
                config = FirebaseConfig.from_mapping(config)
            except ValidationError as e:
                raise IncompleteConfigError() from e
        if not config.is_complete:
            raise IncompleteConfigError()

        self._config = config
        self._auth = AuthState.from_token(id_token)
        self._uid: str | None = None
        self._owns_http_client = owns_http_client
        self._http = http_client
        self._logger = logger

    @property
    def config(self) -> FirebaseConfig:
        return self._config

    @property
    def is_authenticated(self) -> bool:
        """Check if requests carry a bearer token."""
        return self._auth.is_authenticated

    # ------------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------------

    async def verify_and_set_token(self, id_token: str) -> None:
        """Verify an ID token and store the resolved user ID.

        On success the client switches to authenticated mode with this token.

        Args:
            id_token: Firebase ID token from client-side Firebase Auth.

        Raises:
            TokenAlreadyVerifiedError: If a token was already verified.
            TokenVerificationError: If the Identity Toolkit rejects the token.
            NoUserFoundError: If the token resolves to no user.
        """
        if self._uid is not None:
            raise TokenAlreadyVerifiedError()

        response = await self._http.post(
            build_auth_url("getAccountInfo", self._config.api_key),
            headers={"Content-Type": "application/json"},
            json={"idToken": id_token},
        )
        response_data = _read_body(response)

        if not response.is_success:
            self._logger.error(
                "token_verification_failed",
                status=response.status_code,
                status_text=response.reason_phrase,
                response_data=serialize_body(response_data),
                action="verify_token",
            )
            raise TokenVerificationError(response.status_code, response_data)

        users = None
        if isinstance(response_data, dict):
            users = response_data.get("users")
        user = users[0] if isinstance(users, list) and users else None
        uid = user.get("localId") if isinstance(user, dict) else None
        if not uid:
            raise NoUserFoundError()

        self._uid = uid
        self._auth = AuthState.authenticated(id_token)
        self._logger.debug("token_verified", uid=self._uid)

    async def validate_token(self) -> None:
        """Verify the token given at construction, if any.

        No-op for public clients and for clients already verified.
        """
        if not self._auth.is_authenticated or self._uid is not None:
            return
        await self.verify_and_set_token(self._auth.token or "")

    def get_uid(self) -> str:
        """Get the verified user ID.

        Raises:
            TokenNotValidatedError: If no token has been verified yet.
        """
        if self._uid is None:
            raise TokenNotValidatedError()
        return self._uid

    # ------------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------------

    async def get_collection(self, collection_name: str) -> list[dict[str, Any]]:
        """Get all documents in a collection.

        Args:
            collection_name: Collection name (e.g. 'books').

        Returns:
            Decoded documents, each with its 'id'. Empty if the collection
            has no documents.
        """
        url = build_firestore_url(self._config.project_id, collection_name, True)
        response = await self._request(
            "GET", url, "get_collection", collection_name=collection_name
        )
        body = self._json_body(
            response, "get_collection", collection_name=collection_name
        )
        documents = body.get("documents") or []
        return [decode_document(document) for document in documents]

    async def get_document(self, document_path: str) -> dict[str, Any]:
        """Get a single document.

        Args:
            document_path: Path such as 'books/book123'.

        Returns:
            Decoded document with its 'id'.
        """
        url = build_firestore_url(self._config.project_id, document_path, False)
        response = await self._request(
            "GET", url, "get_document", document_path=document_path
        )
        return decode_document(
            self._json_body(response, "get_document", document_path=document_path)
        )

    async def create_document(
        self,
        collection_name: str,
        data: Mapping[str, Any],
        document_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a document.

        Args:
            collection_name: Target collection.
            data: Plain field values, or an already-encoded {"fields": ...} body.
            document_id: Optional ID. Firestore generates one when omitted.

        Returns:
            Decoded created document, including the 'id'.
        """
        url = build_firestore_url(self._config.project_id, collection_name, True)
        params = None
        if document_id is not None:
            params = {"documentId": validate_document_id(document_id)}

        response = await self._request(
            "POST",
            url,
            "create_document",
            body=prepare_document_body(data),
            params=params,
            collection_name=collection_name,
        )
        return decode_document(
            self._json_body(
                response, "create_document", collection_name=collection_name
            )
        )

    async def update_document(
        self,
        document_path: str,
        data: Mapping[str, Any],
        merge: bool = False,
    ) -> dict[str, Any]:
        """Update a document.

        Without ``merge`` the document is replaced by ``data``. With
        ``merge`` only the top-level fields present in ``data`` are written.

        Args:
            document_path: Path such as 'books/book123'.
            data: Plain field values, or an already-encoded {"fields": ...} body.
            merge: Restrict the write to the given fields.

        Returns:
            Decoded updated document.
        """
        url = build_firestore_url(self._config.project_id, document_path, False)
        body = prepare_document_body(data)
        params = update_mask_params(body["fields"]) if merge else None

        response = await self._request(
            "PATCH",
            url,
            "update_document",
            body=body,
            params=params,
            document_path=document_path,
        )
        return decode_document(
            self._json_body(response, "update_document", document_path=document_path)
        )

    async def delete_document(self, document_path: str) -> None:
        """Delete a document.

        Args:
            document_path: Path such as 'books/book123'.
        """
        url = build_firestore_url(self._config.project_id, document_path, False)
        await self._request(
            "DELETE", url, "delete_document", document_path=document_path
        )

    # ------------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        action: str,
        body: dict[str, Any] | None = None,
        params: Any = None,
        **context: Any,
    ) -> httpx.Response:
        """Send a Firestore request; log and raise on non-2xx."""
        response = await self._http.request(
            method,
            url,
            headers=self._auth.headers(),
            json=body,
            params=params,
        )

        if response.is_success:
            self._logger.debug(
                "firestore_request_succeeded",
                status=response.status_code,
                action=action,
                **context,
            )
            return response

        self._raise_failure(response, action, _read_body(response), **context)

    def _json_body(
        self, response: httpx.Response, action: str, **context: Any
    ) -> dict[str, Any]:
        """Decoded JSON object of a successful response.

        A missing or non-object body fails the operation.
        """
        body = _read_body(response)
        if not isinstance(body, dict):
            self._raise_failure(response, action, body, **context)
        return body

    def _raise_failure(
        self, response: httpx.Response, action: str, body: Any, **context: Any
    ) -> NoReturn:
        self._logger.error(
            f"{action}_failed",
            status=response.status_code,
            error=serialize_body(body),
            action=action,
            **context,
        )
        raise OperationFailedError(action, response.status_code, body)

    async def aclose(self) -> None:
        """Close the underlying httpx client if this client created it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "FirebaseRestClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _read_body(response: httpx.Response) -> Any:
    """Response JSON, or the raw text when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


# ============================================================================
# Factory
# ============================================================================


async def create_firebase_rest_client(
    server_env: Settings | Mapping[str, Any] | None,
    id_token: str | None = None,
    http_client: httpx.AsyncClient | None = None,
    logger: Any | None = None,
) -> FirebaseRestClient:
    """Create a client from server settings, verifying the token if given.

    Args:
        server_env: Settings, or a mapping with FIREBASE_CONFIG (JSON string)
            and FIREBASE_PROJECT_ID.
        id_token: Optional Firebase ID token; verified before returning.
        http_client: Optional httpx client. When omitted the factory creates
            one with the Settings timeout and the returned client owns it.
        logger: Optional logger. Defaults to a structlog logger.

    Returns:
        Ready-to-use client.

    Raises:
        MissingConfigError: FIREBASE_CONFIG is not set.
        MissingProjectIdError: FIREBASE_PROJECT_ID is not set.
        InvalidConfigJsonError: FIREBASE_CONFIG is not a JSON object.
        MissingApiKeyError: FIREBASE_CONFIG has no apiKey.
        AuthError: Token verification failed.
    """
    raw_config = _env_value(server_env, "FIREBASE_CONFIG")
    project_id = _env_value(server_env, "FIREBASE_PROJECT_ID")

    if not raw_config:
        raise MissingConfigError()
    if not project_id:
        raise MissingProjectIdError()

    try:
        firebase_config = json.loads(raw_config)
    except json.JSONDecodeError as e:
        raise InvalidConfigJsonError() from e
    if not isinstance(firebase_config, dict):
        raise InvalidConfigJsonError()

    if not firebase_config.get("apiKey"):
        raise MissingApiKeyError()

    timeout = None
    if isinstance(server_env, Settings):
        timeout = server_env.HTTP_TIMEOUT_SECONDS

    owns_http_client = http_client is None
    client = FirebaseRestClient(
        {"apiKey": firebase_config["apiKey"], "projectId": project_id},
        id_token,
        http_client=http_client or httpx.AsyncClient(timeout=timeout),
        logger=logger or get_logger(__name__, service=SERVICE_NAME),
        owns_http_client=owns_http_client,
    )

    if id_token:
        try:
            await client.verify_and_set_token(id_token)
        except Exception:
            await client.aclose()
            raise

    return client


def _env_value(server_env: Settings | Mapping[str, Any] | None, key: str) -> Any:
    if server_env is None:
        return None
    if isinstance(server_env, Mapping):
        return server_env.get(key)
    return getattr(server_env, key, None)
