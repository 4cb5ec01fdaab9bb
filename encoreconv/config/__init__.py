"""Configuration module for encoreconv."""

from encoreconv.config.settings import (
    EncoreConvSettings,
    OutputConfig,
    ToolsConfig,
    get_settings,
    reload_settings,
)

__all__ = [
    "EncoreConvSettings",
    "OutputConfig",
    "ToolsConfig",
    "get_settings",
    "reload_settings",
]
