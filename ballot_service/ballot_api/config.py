"""Configuration management for the Ballot API service."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Service configuration
    SERVICE_NAME: str = "ballot-api"
    API_VERSION: str = "v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Header carrying the calling identity, set by the authenticating proxy
    CALLER_HEADER: str = "X-Caller-Address"

    # Ballot deployed at startup when an administrator is configured
    BALLOT_ADMINISTRATOR: Optional[str] = None
    BALLOT_CANDIDATES: list[str] = []
    BALLOT_DURATION_MINUTES: int = 30

    # JSON snapshot of the ballot state, restored on startup
    BALLOT_SNAPSHOT_PATH: Optional[str] = None

    # Rate limiting
    RATE_LIMIT: str = "1000/second"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    @property
    def api_prefix(self) -> str:
        """Versioned route prefix."""
        return f"/api/{self.API_VERSION}"

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()


settings = Settings()
