"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relay settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    allowlist: str | None = Field(
        default=None,
        description="Comma-separated hostnames the relay may reach; unset allows all",
    )
    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=8080, description="Listen port", ge=1, le=65535)
    route_path: str = Field(default="/api/proxy", description="Path of the relay endpoint")
    request_timeout: float = Field(default=300.0, description="Upstream timeout in seconds", gt=0)
    default_user_agent: str = Field(
        default="Mozilla/5.0 (CORS-Relay)",
        description="User-Agent sent upstream when the caller provides none",
    )
    chunk_size: int = Field(default=65536, description="Streaming chunk size in bytes", ge=1)
    log_level: str = Field(default="INFO", description="Logging level")
    aiohttp_log_level: str = Field(default="WARNING", description="Level of aiohttp's own loggers")

    @property
    def allowed_hosts(self) -> frozenset[str] | None:
        """Lower-cased allow-list, or None when every host is permitted."""
        if not self.allowlist:
            return None
        hosts = frozenset(h.strip().lower() for h in self.allowlist.split(",") if h.strip())
        return hosts or None


@lru_cache
def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()
