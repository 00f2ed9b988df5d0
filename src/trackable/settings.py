"""Environment-driven settings for trackable.

Trackable has almost nothing to configure: how its own log lines are
rendered and whether a ``map`` stage that returns ``None`` should be
reported. ``TrackableSettings`` reads those from ``TRACKABLE_*`` environment
variables or a ``.env`` file.

Examples:
    >>> from trackable.settings import TrackableSettings
    >>> TrackableSettings(log_level="DEBUG").log_level
    'DEBUG'

Tags:
    settings, configuration, pydantic, environment, trackable

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackableSettings(BaseSettings):
    """Settings shared by the wrapper, the sinks and logging setup.

    Fields
    ──────
    log_level     : Structlog log level
    json_logs     : JSON output (True), console (False), auto-detect (None)
    service_name  : ``service.name`` stamped on every log line
    warn_on_none  : Warn when a ``map`` stage returns ``None``
    """

    model_config = SettingsConfigDict(
        env_prefix="TRACKABLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None
    service_name: str = "trackable"

    # ── Pipeline ─────────────────────────────────────────────────
    warn_on_none: bool = Field(
        default=True,
        description="Log a warning when a map stage returns None",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> TrackableSettings:
    """Return the process-wide settings, loaded once."""
    return TrackableSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings()`` re-reads the environment."""
    get_settings.cache_clear()


__all__ = ["TrackableSettings", "get_settings", "reset_settings"]
