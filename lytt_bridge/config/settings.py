"""Centralized configuration via pydantic-settings.

All ``LYTT_*`` environment variables (and ``OPENAI_API_KEY``) are read,
validated, and exposed here. Logging env vars (``LYTT_LOG_FORMAT``,
``LYTT_LOG_LEVEL``) are intentionally excluded; they stay in
``lytt_bridge.logging`` for bootstrap-safety.

Usage::

    from lytt_bridge.config.settings import get_settings

    settings = get_settings()
    print(settings.server.port)            # int, validated
    print(settings.upstream.timeout_s)     # float, validated

``.env`` files in the working directory are loaded automatically.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from lytt_bridge.exceptions import ConfigError

_ENV_FILE = ".env"

DEFAULT_UPSTREAM_URL = "https://api.openai.com/v1/audio/transcriptions"
DEFAULT_UPSTREAM_MODEL = "whisper-1"


class ServerSettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    host: str = Field(default="127.0.0.1", validation_alias="LYTT_HOST")
    port: int = Field(default=3000, ge=1, le=65535, validation_alias="LYTT_PORT")
    # 1 MB of headroom above the upstream API's 25 MB cap.
    max_body_mb: int = Field(default=26, ge=1, le=500, validation_alias="LYTT_MAX_BODY_MB")
    cors_origins: str = Field(default="*", validation_alias="LYTT_CORS_ORIGINS")

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list (parsed from comma-separated string)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def max_body_bytes(self) -> int:
        """Maximum request body size in bytes (derived from MB setting)."""
        return self.max_body_mb * 1024 * 1024

    @property
    def addr(self) -> str:
        return f"{self.host}:{self.port}"


class UpstreamSettings(BaseSettings):
    """Transcription API endpoint, credentials and HTTP client tuning."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("OPENAI_API_KEY", "LYTT_OPENAI_API_KEY"),
    )
    url: str = Field(default=DEFAULT_UPSTREAM_URL, validation_alias="LYTT_UPSTREAM_URL")
    model: str = Field(default=DEFAULT_UPSTREAM_MODEL, validation_alias="LYTT_UPSTREAM_MODEL")
    timeout_s: float = Field(
        default=30.0, gt=0, le=600, validation_alias="LYTT_UPSTREAM_TIMEOUT_S"
    )
    max_connections: int = Field(
        default=10, ge=1, le=1000, validation_alias="LYTT_UPSTREAM_MAX_CONNECTIONS"
    )
    error_excerpt_chars: int = Field(
        default=500, ge=0, le=100_000, validation_alias="LYTT_UPSTREAM_ERROR_EXCERPT_CHARS"
    )

    def require_api_key(self) -> str:
        """Return the API key, or raise if it is blank.

        Raises:
            ConfigError: If OPENAI_API_KEY is unset or whitespace only.
        """
        key = self.api_key.get_secret_value().strip()
        if not key:
            msg = "OPENAI_API_KEY is required. Set it in your shell or in a .env file."
            raise ConfigError(msg)
        return key


class CLISettings(BaseSettings):
    """CLI client settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    server_url: str = Field(default="http://localhost:3000", validation_alias="LYTT_SERVER_URL")
    http_timeout_s: float = Field(default=120.0, gt=0, validation_alias="LYTT_HTTP_TIMEOUT_S")


class LyttSettings(BaseSettings):
    """Root settings, aggregating all subsystem settings.

    Loads ``.env`` from the current directory when present.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    cli: CLISettings = Field(default_factory=CLISettings)


@lru_cache(maxsize=1)
def get_settings() -> LyttSettings:
    """Return the singleton ``LyttSettings`` instance.

    The result is cached: subsequent calls return the same object.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return LyttSettings()
