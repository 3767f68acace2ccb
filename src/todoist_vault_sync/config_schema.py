"""Unified configuration schema for todoist_vault_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Todoist connection, the vault location, and logging.
Every section has defaults so an empty config file is valid.

Usage:
    from todoist_vault_sync.config_loader import load_hierarchical_config
    from todoist_vault_sync.config_schema import build_config

    unified = build_config(load_hierarchical_config())
    fallbacks = unified.fallbacks()
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TodoistConfig(BaseModel):
    """Todoist connection settings.

    All fields are optional so env vars and CLI args can supply them.
    """

    api_token: str | None = Field(
        default=None, description="Todoist API token"
    )
    base_url: str | None = Field(
        default=None, description="Todoist API base URL"
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout in seconds",
    )
    max_retries: int | None = Field(
        default=None,
        ge=0,
        le=10,
        description="Retries for transient transport failures (0-10)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class VaultConfig(BaseModel):
    """Where the mirror lives.

    Attributes:
        path: Root directory of the notes vault.
        settings_file: Location of the settings blob (cursor + layout).
    """

    path: str | None = Field(default=None, description="Vault root")
    settings_file: str | None = Field(
        default=None, description="Settings JSON path"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level unified configuration."""

    todoist: TodoistConfig = Field(default_factory=TodoistConfig)
    vault: VaultConfig = Field(default_factory=VaultConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def fallbacks(self) -> dict[str, Any]:
        """Flatten the config into ``load_config()`` fallback keys.

        Only values that were actually set are returned.
        """
        values = {
            "api_token": self.todoist.api_token,
            "base_url": self.todoist.base_url,
            "timeout": self.todoist.timeout,
            "max_retries": self.todoist.max_retries,
            "debug": self.todoist.debug or None,
            "vault_path": self.vault.path,
            "settings_file": self.vault.settings_file,
        }
        return {k: v for k, v in values.items() if v is not None}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a section has invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
