"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from reelscout.infrastructure.streams.magnet import DEFAULT_TRACKERS

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
LegacyPolicy = Literal["disabled", "always", "when_empty"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseSettings):
    """Cache / persistence backend configuration."""

    backend: Literal["diskcache", "redis"] = Field(
        default="diskcache",
        description="Cache backend: 'diskcache' (SQLite) or 'redis'",
    )
    directory: Path = Field(
        default=Path("./.cache/reelscout"),
        alias="dir",
        description="Diskcache SQLite directory",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    ttl_seconds: int = Field(
        default=3600,
        description="Default TTL for cache entries (seconds)",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache ttl_seconds must be >= 0")
        return v


class AddonDefault(BaseModel):
    """An add-on seeded into the default owner's registry at startup."""

    name: str
    url: str


class AddonsConfig(BaseModel):
    """Add-on registry and fetch behaviour."""

    default_owner: str = Field(
        default="local",
        description="Owner used when a request carries no user header.",
    )
    defaults: list[AddonDefault] = Field(
        default_factory=list,
        description="Add-ons seeded for the default owner on first start.",
    )
    fetch_timeout_seconds: float = Field(
        default=15.0,
        description="Per-add-on request timeout in seconds.",
    )

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("fetch_timeout_seconds must be > 0")
        return v


class PlaybackConfig(BaseModel):
    """Playback fallback chain configuration."""

    trackers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRACKERS),
        description="Ordered announce list appended to synthesized magnets.",
    )
    fallback_enabled: bool = Field(
        default=True,
        description="Switch to the cloud-embed player on engine failure.",
    )
    searching_hint_seconds: float = Field(
        default=8.0,
        description="Delay before the 'still searching / no peers yet' hint.",
    )
    auto_fallback_seconds: Optional[float] = Field(
        default=None,
        description="Fall back automatically if the engine is not ready in time.",
    )
    embed_base_url: str = Field(
        default="https://webtor.io/embed",
        description="Base URL of the cloud-embedded player.",
    )
    session_idle_ttl_seconds: Optional[float] = Field(
        default=1800.0,
        description="Close playback sessions idle this long; unset keeps them.",
    )
    max_sessions: Optional[int] = Field(
        default=100,
        description="Live session cap; the least recently used is closed first.",
    )
    session_sweep_interval_seconds: float = Field(
        default=60.0,
        description="How often idle sessions are swept.",
    )

    @field_validator("searching_hint_seconds")
    @classmethod
    def _validate_hint(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("searching_hint_seconds must be > 0")
        return v

    @field_validator("session_idle_ttl_seconds", "session_sweep_interval_seconds")
    @classmethod
    def _validate_positive_seconds(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("session timing values must be > 0")
        return v

    @field_validator("max_sessions")
    @classmethod
    def _validate_max_sessions(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("max_sessions must be >= 1 or unset")
        return v

    @field_validator("auto_fallback_seconds")
    @classmethod
    def _validate_auto_fallback(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("auto_fallback_seconds must be > 0 or unset")
        return v


class LegacyConfig(BaseModel):
    """Last-resort public torrent index (movies only)."""

    policy: LegacyPolicy = Field(
        default="when_empty",
        description="disabled | always | when_empty",
    )
    base_url: str = Field(
        default="https://yts.mx/api/v2",
        description="Legacy index API base URL.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/addons/playback/legacy).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="reelscout", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout for outgoing HTTP requests.",
    )
    http_user_agent: str = Field(
        default="reelscout/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )
    http_subtitle_max_bytes: int = Field(
        default=2 * 1024 * 1024,
        validation_alias=AliasChoices(
            "http_subtitle_max_bytes",
            AliasPath("http", "subtitle_max_bytes"),
        ),
        description="Size cap for subtitle files fetched by the VTT endpoint.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    addons: AddonsConfig = Field(default_factory=AddonsConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    legacy: LegacyConfig = Field(default_factory=LegacyConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_subtitle_max_bytes")
    @classmethod
    def _validate_subtitle_max_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("http_subtitle_max_bytes must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
                "subtitle_max_bytes": self.http_subtitle_max_bytes,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "redis_url": self.cache.redis_url,
                "ttl_seconds": self.cache.ttl_seconds,
            },
            "addons": self.addons.model_dump(),
            "playback": self.playback.model_dump(),
            "legacy": self.legacy.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read REELSCOUT_* variables, keeps the
    ones that were set, merges them over YAML/defaults, then validates
    AppConfig.

    Supported env var examples (flat, explicit):
    - REELSCOUT_HTTP_TIMEOUT_SECONDS
    - REELSCOUT_LOG_LEVEL
    - REELSCOUT_CACHE_BACKEND
    - REELSCOUT_LEGACY_POLICY
    """

    model_config = SettingsConfigDict(
        env_prefix="REELSCOUT_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None
    http_subtitle_max_bytes: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[Literal["diskcache", "redis"]] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None
    cache_ttl_seconds: Optional[int] = None

    addons_default_owner: Optional[str] = None
    addons_fetch_timeout_seconds: Optional[float] = None

    playback_fallback_enabled: Optional[bool] = None
    playback_auto_fallback_seconds: Optional[float] = None
    playback_session_idle_ttl_seconds: Optional[float] = None
    playback_max_sessions: Optional[int] = None

    legacy_policy: Optional[LegacyPolicy] = None
    legacy_base_url: Optional[str] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
