"""Engine settings and the explicit configuration store.

The engine has no process-wide configuration singleton. ``EngineSettings`` is
an immutable, validated snapshot read from ``DELAY_SPINE_*`` environment
variables (and ``.env``); ``ConfigStore`` is a small mutable holder that a
caller owns and threads into whichever component needs it. The
``LoggingObserver`` receives a store through its constructor and reads it at
emission time, so ``store.set("log_prefix", ">")`` takes effect on the next
event of a run already in progress.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked on every change, not at use
    - **Environment-driven:** ``DELAY_SPINE_`` prefix, ``.env`` support
    - **Explicitly passed:** No hidden global state between runs

Examples:
    >>> store = ConfigStore()
    >>> store.update(log_prefix=">", show_timestamps=True)
    >>> store.get("log_prefix")
    '>'
    >>> store.snapshot().show_timestamps
    True

Tags:
    settings, configuration, pydantic, environment, delay-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from delay_spine.core.errors import ConfigError


class EngineSettings(BaseSettings):
    """Recognised engine options.

    Fields
    ──────
    enable_logging    : LoggingObserver writes lines only when true
    log_prefix        : Text put in front of every formatted event line
    show_timestamps   : Include the event's ISO timestamp in formatted lines
    colorize          : Colour CLI output
    time_unit_seconds : Seconds per unit of element weight (0.001 = weights in ms)
    log_level         : Structlog log level
    json_logs         : JSON log output; None auto-detects from the tty
    """

    model_config = SettingsConfigDict(
        env_prefix="DELAY_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Event formatting ─────────────────────────────────────────
    enable_logging: bool = True
    log_prefix: str = ""
    show_timestamps: bool = False
    colorize: bool = True

    # ── Scheduling ───────────────────────────────────────────────
    time_unit_seconds: float = Field(
        default=0.001,
        gt=0,
        description="Seconds per unit of element weight",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None


class ConfigStore:
    """Caller-owned key/value view over ``EngineSettings``.

    Every mutation re-validates and swaps in a new frozen snapshot, so a
    reader holding an older snapshot never sees it change underneath it.
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self._settings = settings if settings is not None else EngineSettings()

    def get(self, key: str) -> Any:
        """Return the current value of ``key``.

        Raises:
            ConfigError: If ``key`` is not a recognised option.
        """
        self._check_key(key)
        return getattr(self._settings, key)

    def set(self, key: str, value: Any) -> None:
        """Set a single option."""
        self.update(**{key: value})

    def update(self, **partial: Any) -> None:
        """Merge ``partial`` into the current settings.

        Raises:
            ConfigError: On unknown keys or values that fail validation; the
                store is left unchanged.
        """
        for key in partial:
            self._check_key(key)
        data = {**self._settings.model_dump(), **partial}
        try:
            self._settings = EngineSettings(**data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e.errors()[0]['msg']}", cause=e) from e

    def reset(self) -> None:
        """Restore defaults (environment overrides still apply)."""
        self._settings = EngineSettings()

    def snapshot(self) -> EngineSettings:
        """Return the current immutable settings."""
        return self._settings

    def to_dict(self) -> dict[str, Any]:
        return self._settings.model_dump()

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in EngineSettings.model_fields:
            known = ", ".join(sorted(EngineSettings.model_fields))
            raise ConfigError(f"Unknown configuration key '{key}'. Known keys: {known}", key=key)


def as_store(config: ConfigStore | EngineSettings | None) -> ConfigStore:
    """Normalise a settings snapshot (or nothing) into a store."""
    if isinstance(config, ConfigStore):
        return config
    return ConfigStore(config)


__all__ = ["EngineSettings", "ConfigStore", "as_store"]
