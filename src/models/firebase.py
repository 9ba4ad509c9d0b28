"""Firebase client models.

FirebaseConfig: project credentials parsed from the Firebase web config.
AuthState: public vs authenticated request mode.
FirestoreDocument: raw document as returned by the Firestore REST API.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FirebaseConfig(BaseModel):
    """Firebase project configuration.

    Accepts the camelCase keys of the Firebase web config (apiKey, projectId)
    and ignores the rest (authDomain, appId, ...). Emptiness is checked by
    the client, not here, so an incomplete config can still be built and
    rejected with a configuration error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    api_key: str = Field("", alias="apiKey", description="Firebase Web API key")
    project_id: str = Field("", alias="projectId", description="Firebase project ID")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FirebaseConfig":
        """Build a config from a camelCase or snake_case mapping."""
        return cls.model_validate(dict(data))

    @property
    def is_complete(self) -> bool:
        """Check if both apiKey and projectId are set."""
        return bool(self.api_key and self.project_id)


class AuthMode(str, Enum):
    """Request authentication mode."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthState:
    """Authentication state held by the client.

    PUBLIC sends no credentials; AUTHENTICATED sends the bearer token.
    """

    mode: AuthMode
    token: str | None = None

    @classmethod
    def public(cls) -> "AuthState":
        return cls(AuthMode.PUBLIC)

    @classmethod
    def authenticated(cls, token: str) -> "AuthState":
        return cls(AuthMode.AUTHENTICATED, token)

    @classmethod
    def from_token(cls, token: str | None) -> "AuthState":
        """AUTHENTICATED for a non-empty token, PUBLIC otherwise."""
        return cls.authenticated(token) if token else cls.public()

    @property
    def is_authenticated(self) -> bool:
        return self.mode is AuthMode.AUTHENTICATED

    def headers(self) -> dict[str, str]:
        """Request headers for this mode."""
        headers = {"Content-Type": "application/json"}
        if self.mode is AuthMode.AUTHENTICATED:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def __repr__(self) -> str:
        # token is a credential
        return f"AuthState(mode={self.mode.value})"


class FirestoreDocument(BaseModel):
    """Firestore REST document.

    Firestore resource: projects/{project}/databases/(default)/documents/{path}
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = Field(None, description="Full resource name")
    fields: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Field name -> wire value"
    )
    create_time: str | None = Field(None, alias="createTime")
    update_time: str | None = Field(None, alias="updateTime")

    @property
    def id(self) -> str | None:
        """Document ID (last segment of the resource name)."""
        if not self.name:
            return None
        return self.name.rsplit("/", 1)[-1]
