"""jyugemu configuration: Pydantic model, load, and save."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from jyugemu.core.constants import (
    CONFIG_FILENAME,
    DEFAULT_HISTORY_LIMIT,
    HISTORY_FILENAME,
    JYUGEMU_DIR_NAME,
    LOCK_POLL_INTERVAL_SECONDS,
    LOCK_TIMEOUT_SECONDS,
    MAX_LOCK_TIMEOUT_SECONDS,
)
from jyugemu.core.exceptions import ConfigError, ConfigNotFoundError

SUPPORTED_SHELLS = ("bash", "zsh", "powershell")


def jyugemu_dir() -> Path:
    """Return the jyugemu config directory (~/.jyugemu)."""
    return Path.home() / JYUGEMU_DIR_NAME


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class StoreConfig(BaseModel):
    path: str = HISTORY_FILENAME  # relative paths resolve against the working directory
    lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS
    lock_poll_interval_seconds: float = LOCK_POLL_INTERVAL_SECONDS

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("store.path must not be empty")
        return v

    @field_validator("lock_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if not (0 < v <= MAX_LOCK_TIMEOUT_SECONDS):
            raise ValueError(f"lock_timeout_seconds must be in (0, {MAX_LOCK_TIMEOUT_SECONDS:g}]")
        return v

    @field_validator("lock_poll_interval_seconds")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("lock_poll_interval_seconds must be positive")
        return v


class HistoryConfig(BaseModel):
    default_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=0)


class SessionConfig(BaseModel):
    shell: str = ""  # empty → platform default

    @field_validator("shell")
    @classmethod
    def validate_shell(cls, v: str) -> str:
        if v and v.lower() not in SUPPORTED_SHELLS:
            raise ValueError(f"session.shell must be one of: {', '.join(SUPPORTED_SHELLS)}")
        return v.lower()


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class JyugemuConfig(BaseModel):
    """Root jyugemu configuration model."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Computed paths (not stored in config file)
    _config_path: Path | None = None

    @property
    def history_path(self) -> Path:
        return Path(self.store.path).expanduser().resolve()

    @property
    def config_path(self) -> Path | None:
        return self._config_path


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def config_file_path() -> Path:
    """Config file location: $JYUGEMU_CONFIG, else ~/.jyugemu/config.toml."""
    if env_path := os.environ.get("JYUGEMU_CONFIG"):
        return Path(env_path)
    return jyugemu_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> JyugemuConfig:
    """
    Load JyugemuConfig from TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (JYUGEMU_*)
      2. Config file (~/.jyugemu/config.toml or $JYUGEMU_CONFIG)
      3. Built-in defaults

    A missing default config file is not an error; jyugemu runs unconfigured.
    A path passed explicitly must exist.
    """
    import tomllib

    cfg_path = path or config_file_path()

    data: dict[str, Any] = {}
    if cfg_path.exists():
        try:
            with open(cfg_path, "rb") as f:
                data = tomllib.load(f)
        except Exception as exc:
            raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc
    elif path is not None:
        raise ConfigNotFoundError(f"Config file not found: {cfg_path}")

    _apply_env_overrides(data)

    try:
        config = JyugemuConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc

    config._config_path = cfg_path if cfg_path.exists() else None
    return config


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay JYUGEMU_* environment variables onto the parsed TOML data."""
    if history_file := os.environ.get("JYUGEMU_HISTORY_FILE"):
        data.setdefault("store", {})["path"] = history_file
    if timeout := os.environ.get("JYUGEMU_LOCK_TIMEOUT"):
        try:
            data.setdefault("store", {})["lock_timeout_seconds"] = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"JYUGEMU_LOCK_TIMEOUT must be a number, got {timeout!r}") from exc
    if level := os.environ.get("JYUGEMU_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = level
    if shell := os.environ.get("JYUGEMU_SHELL"):
        data.setdefault("session", {})["shell"] = shell


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file, readable by the owner only."""
    import tomli_w

    cfg_path = path or config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    # Write atomically
    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.replace(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    cfg_path.chmod(0o600)
    return cfg_path


def config_to_dict(config: JyugemuConfig) -> dict[str, Any]:
    """Plain-dict view of a config, suitable for TOML or JSON output."""
    return config.model_dump()
