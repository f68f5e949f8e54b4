"""Configuration management for the subscription feed service."""

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="YT_", extra="ignore")

    # Signs the OAuth state parameter
    app_secret_key: str

    # Google OAuth
    google_client_id: str
    google_client_secret: str
    google_redirect_uri: HttpUrl

    # YouTube Data API key, used for key-authenticated listing calls
    youtube_api_key: str = Field(default="")

    # Upstream rate limiting
    rate_limit_backoff_seconds: float = Field(default=60.0, ge=0)

    # Credential refresh
    token_refresh_margin_seconds: int = Field(default=300, ge=0)

    # Aggregation
    videos_per_channel: int = Field(default=5, ge=1, le=50)
    channel_batch_size: int = Field(default=50, ge=1, le=50)
    max_concurrent_channels: int = Field(default=0, ge=0)  # 0 means unbounded
    http_timeout_seconds: float = 15.0
    feed_deadline_seconds: float | None = None

    # CORS
    frontend_origin: str = "http://localhost:3000"

    # Environment
    env: str = Field(default="dev", pattern="^(dev|prod)$")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
