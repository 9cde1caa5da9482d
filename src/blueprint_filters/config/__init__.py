"""
Settings for blueprint-filters.

Settings come from TOML files (see config/default.toml for every key) and
BPF_* environment variables; ``get_settings`` caches the result for the
process.

Example:
    >>> from blueprint_filters.config import get_settings
    >>>
    >>> engine_table = get_settings().database.table
"""

from blueprint_filters.config.settings import (
    DatabaseSettings,
    LimitsSettings,
    Settings,
    get_settings,
    load_settings,
    reload_settings,
)

__all__ = [
    "DatabaseSettings",
    "LimitsSettings",
    "Settings",
    "get_settings",
    "load_settings",
    "reload_settings",
]
