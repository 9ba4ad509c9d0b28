"""Application settings using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration from environment variables.

    Firebase values are optional here. The client factory reports missing
    values with its own configuration errors.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Firebase
    # -------------------------------------------------------------------------
    FIREBASE_CONFIG: str | None = None
    """Firebase web config as a JSON string (must contain apiKey)"""

    FIREBASE_PROJECT_ID: str | None = None

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    HTTP_TIMEOUT_SECONDS: float = 10.0
    """Timeout for the httpx client the factory creates when none is injected"""

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    LOG_JSON: bool = True

    @property
    def has_firebase(self) -> bool:
        """Check if both Firebase values are present."""
        return bool(self.FIREBASE_CONFIG and self.FIREBASE_PROJECT_ID)


# Singleton instance (lazy initialization)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
