"""Salesforce MCP configuration management.

Configuration sources (in priority order):
1. Environment variables (SF_ prefix)
2. Local .env file
3. Config file (salesforce-mcp.yaml)
4. Defaults
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# SOQL LIMIT accepted by `sf data query` without bulk mode
MAX_RECORD_LIMIT = 50000


def _find_config_file() -> Path | None:
    """Locate the YAML config file if one exists.

    Looks for config file in order:
    1. SF_MCP_CONFIG_FILE environment variable
    2. ./salesforce-mcp.yaml
    """
    config_paths = [
        os.environ.get("SF_MCP_CONFIG_FILE"),
        Path("salesforce-mcp.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            return path

    return None


class Settings(BaseSettings):
    """Salesforce MCP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="SF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Alias or username of an org already authenticated with `sf org login`.
    # Not required at startup; every fetch fails with MissingOrgAlias instead.
    org_alias: str | None = None

    record_limit: int = Field(default=10, ge=1, le=MAX_RECORD_LIMIT)

    # Per-call timeout for the sf process, in seconds
    command_timeout: float = Field(default=60.0, gt=0)

    cli_path: str = "sf"
    api_version: str | None = None

    log_level: str = "INFO"

    @field_validator("org_alias", "api_version", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources = [init_settings, env_settings, dotenv_settings]
        config_file = _find_config_file()
        if config_file is not None:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=config_file))
        sources.append(file_secret_settings)
        return tuple(sources)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
