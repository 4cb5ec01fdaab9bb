"""Configuration settings using pydantic-settings."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from encoreconv.config.constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_ENC2LY_NAME,
    DEFAULT_LIBRARY,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_MAX_VALUE_LENGTH,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PYTHON_NAME,
    DEFAULT_SEARCH_DIRS,
    DEFAULT_SHELL,
    DEFAULT_SUBCOMMAND,
)


class ToolsConfig(BaseModel):
    """External tool discovery configuration."""

    enc2ly_name: str = DEFAULT_ENC2LY_NAME
    python_name: str = DEFAULT_PYTHON_NAME
    library: str = DEFAULT_LIBRARY
    subcommand: str = DEFAULT_SUBCOMMAND

    # Explicit paths win over discovery when they point at an executable
    enc2ly_path: str | None = None
    python_path: str | None = None

    search_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_SEARCH_DIRS))
    extra_search_dirs: list[str] = Field(default_factory=list)  # Checked before search_dirs
    shell: str = Field(default_factory=lambda: os.environ.get("SHELL") or DEFAULT_SHELL)

    @property
    def search_order(self) -> list[str]:
        """All directories to search, in priority order."""
        return [*self.extra_search_dirs, *self.search_dirs]


class OutputConfig(BaseModel):
    """Output configuration."""

    default_dir: str = DEFAULT_OUTPUT_DIR
    keep_intermediate: bool = False  # Keep the .ly file after a successful export


class EncoreConvSettings(BaseSettings):
    """Main configuration class for encoreconv."""

    model_config = SettingsConfigDict(
        env_prefix="ENCORECONV_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings sources to include YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=DEFAULT_CONFIG_FILE),
            file_secret_settings,
        )

    # Sub-configurations
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    # Global settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: str = DEFAULT_LOG_DIR
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS  # 0 keeps every task log
    log_max_value_length: int = Field(default=DEFAULT_LOG_MAX_VALUE_LENGTH, ge=80)

    def get_output_dir(self, base_path: Path | None = None) -> Path:
        """Get the output directory path."""
        if base_path:
            return base_path / self.output.default_dir
        return Path(self.output.default_dir)


@lru_cache
def get_settings() -> EncoreConvSettings:
    """Get cached settings instance."""
    return EncoreConvSettings()


def reload_settings() -> EncoreConvSettings:
    """Force reload settings (clear cache)."""
    get_settings.cache_clear()
    return get_settings()
