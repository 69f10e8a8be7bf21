"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .enums import LogFormat
from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000


class PersistenceConfig(BaseModel):
    data_file: str = "data.json"
    max_attempts: int = 3  # Write attempts per save before giving up
    retry_backoff_ms: int = 50  # Sleep between attempts, doubled each retry


class AdminConfig(BaseModel):
    default_username: str = "admin"
    default_password: str = "changeme123"  # Seeded on first boot only
    session_ttl_minutes: int = 480
    hash_iterations: int = 200_000
    cookie_name: str = "auction_admin"


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.JSON


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "AUCTION_", "env_nested_delimiter": "__"}

    def validate_limits(self) -> None:
        """Reject settings that would make the engine misbehave."""
        if self.persistence.max_attempts < 1:
            raise ConfigError("persistence.max_attempts must be at least 1")
        if self.persistence.retry_backoff_ms < 0:
            raise ConfigError("persistence.retry_backoff_ms must not be negative")
        if self.admin.session_ttl_minutes <= 0:
            raise ConfigError("admin.session_ttl_minutes must be positive")
        if self.admin.hash_iterations < 1:
            raise ConfigError("admin.hash_iterations must be at least 1")


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    settings = Settings(**data)
    settings.validate_limits()
    return settings
