"""
Settings for the query engine, the wire format and filter limits.

Values are layered, each source overriding the one before it:

- the defaults declared on the models below
- config/default.toml, then config/local.toml, relative to the working
  directory
- the file named by BPF_CONFIG_PATH (or the CLI --config option, which
  replaces the file search)
- BPF_<SECTION>_<KEY> environment variables

Example:
    >>> from blueprint_filters.config import get_settings
    >>>
    >>> limits = get_settings().limits
    >>> validate_filter(definition, fields, limits.max_conditions, limits.max_depth)
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "BPF_"
CONFIG_PATH_ENV = "BPF_CONFIG_PATH"
CONFIG_FILES = ("config/default.toml", "config/local.toml")
_NONE_WORDS = ("none", "null", "")


class DatabaseSettings(BaseModel):
    """Database settings for the SQLite query engine."""

    model_config = ConfigDict(extra="ignore")

    path: str = Field(
        default="blueprint_filters.db",
        description="SQLite file, relative to base_dir unless absolute",
    )
    table: str = Field(
        default="items",
        description="Default table filters are applied to",
    )
    timeout_seconds: float = Field(default=30.0, description="Busy timeout for sqlite3.connect")


class SerializationSettings(BaseModel):
    """Wire format settings."""

    model_config = ConfigDict(extra="ignore")

    indent: int | None = Field(
        default=2,
        description="JSON indentation (None = compact)",
    )


class LimitsSettings(BaseModel):
    """Filter size limits enforced by validation."""

    model_config = ConfigDict(extra="ignore")

    max_conditions: int | None = Field(
        default=50,
        description="Maximum total conditions (None = unlimited)",
    )
    max_depth: int | None = Field(
        default=5,
        description="Maximum group nesting depth (None = unlimited)",
    )


class LoggingSettings(BaseModel):
    """Logging settings."""

    model_config = ConfigDict(extra="ignore")

    level: str = Field(default="INFO", description="Standard library level name")
    format: str = Field(default="console", description="\"console\" or \"json\"")
    include_timestamp: bool = True


class Settings(BaseModel):
    """All settings, one nested model per section."""

    model_config = ConfigDict(extra="ignore")

    name: str = "blueprint-filters"
    base_dir: Path = Path("data")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    serialization: SerializationSettings = Field(default_factory=SerializationSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def database_path(self) -> Path:
        """SQLite file location with base_dir applied."""
        path = Path(self.database.path)
        return path if path.is_absolute() else self.base_dir / path


def _find_config_files() -> list[Path]:
    """Existing config files, lowest precedence first."""
    cwd = Path.cwd()
    files = [cwd / name for name in CONFIG_FILES if (cwd / name).exists()]

    explicit = os.environ.get(CONFIG_PATH_ENV)
    if explicit and Path(explicit).exists():
        files.append(Path(explicit))

    return files


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Sections merge key by key; any other value in ``override`` replaces the
    one in ``base``.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _merge_dicts(current, value)
        merged[key] = value
    return merged


def _coerce(original: Any, value: str) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(original, bool):
        return value.lower() in ("true", "1", "yes")
    if original is None or isinstance(original, (int, float)):
        # Optional limits: "none" lifts the limit
        if value.lower() in _NONE_WORDS:
            return None
    if isinstance(original, int):
        return int(value)
    if isinstance(original, float):
        return float(value)
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Overwrite keys of ``config`` named by BPF_ variables, in place.

    The first name part selects a section and the rest form the key, so
    BPF_LIMITS_MAX_CONDITIONS sets limits.max_conditions and BPF_BASE_DIR
    sets the top-level base_dir. Variables naming unknown keys are ignored.

    Returns:
        The same dictionary
    """
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX) or key == CONFIG_PATH_ENV:
            continue

        parts = key[len(ENV_PREFIX) :].lower().split("_")

        # Walk into sections, then join what is left into the leaf key
        current = config
        while len(parts) > 1 and isinstance(current.get(parts[0]), dict):
            current = current[parts[0]]
            parts = parts[1:]

        leaf = "_".join(parts)
        if leaf in current and not isinstance(current[leaf], dict):
            current[leaf] = _coerce(current[leaf], value)

    return config


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Build settings from defaults, config files and the environment.

    Args:
        config_path: Read only this file instead of searching for
            config/default.toml, config/local.toml and BPF_CONFIG_PATH
    """
    # Every key exists up front so the environment can override any of them
    config: dict[str, Any] = Settings().model_dump(mode="json")

    paths = [Path(config_path)] if config_path else _find_config_files()
    for path in paths:
        config = _merge_dicts(config, _load_toml(path))

    return Settings(**_apply_env_overrides(config))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    return load_settings()


def reload_settings() -> Settings:
    """Drop the cached settings and load them again."""
    get_settings.cache_clear()
    return get_settings()
