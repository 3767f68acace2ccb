"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config
from ..core.async_utils import run_sync
from ..core.client import TodoistClient
from ..sync.engine import SyncEngine
from ..sync.scheduler import AutoSyncScheduler
from ..sync.state import SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class ServerContext:
    """Everything a tool handler needs, built once per server run."""

    config: Config
    client: TodoistClient
    settings_store: SettingsStore
    engine: SyncEngine
    scheduler: AutoSyncScheduler

    @property
    def vault_root(self) -> Path:
        return Path(self.config.vault_path)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def _load_server_config(overrides: dict[str, Any]) -> tuple[Config, list[str]]:
    load_dotenv()

    yaml_fallbacks: dict[str, Any] | None = None
    sources = []
    config_files = discover_config_files()
    if config_files:
        unified = build_config(load_hierarchical_config())
        yaml_fallbacks = unified.fallbacks()
        sources.append(f"config file: {config_files[0]}")

    config = load_config(
        api_token=overrides.get("api_token"),
        vault_path=overrides.get("vault_path"),
        settings_file=overrides.get("settings_file"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    return config, sources


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[ServerContext]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env and YAML config, merged via load_config():
      CLI > env vars > .env > YAML > settings blob > defaults
    - Create TodoistClient and validate the token
    - Fail fast if Todoist is unreachable or the token is rejected
    - Build the sync engine and start auto sync if enabled

    On shutdown:
    - Stop the auto sync timer

    Args:
        config_overrides: Optional dict with config values from CLI
            (api_token, vault_path, settings_file, debug)

    Yields:
        ServerContext shared by all tool handlers

    Raises:
        RuntimeError: If configuration is invalid or the connection fails.
    """
    logger.info("MCP server starting...")
    _stderr_print("Todoist Vault Sync MCP Server starting...")

    try:
        config, sources = _load_server_config(config_overrides or {})
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        logger.info("Vault: %s", config.vault_path)
        _stderr_print(f"  Vault: {config.vault_path}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print("  Ensure TODOIST_API_TOKEN and TODOIST_VAULT are set.")
        raise RuntimeError(
            f"Configuration error: {e}. Ensure TODOIST_API_TOKEN and TODOIST_VAULT are set."
        ) from e

    logger.info("Validating Todoist connection...")
    _stderr_print("  Validating Todoist connection...")
    try:
        client = TodoistClient(config)
        project_count = await run_sync(client.validate_connection)
        logger.info("Connected to Todoist (%d projects)", project_count)
        _stderr_print(f"  Connected to Todoist ({project_count} projects)")
    except Exception as e:
        logger.error("Failed to connect to Todoist: %s", e)
        _stderr_print("ERROR: Todoist connection failed.")
        _stderr_print(f"  {e}")
        _stderr_print("  Check TODOIST_API_TOKEN and network access.")
        raise RuntimeError(
            f"Todoist connection failed: {e}. Check TODOIST_API_TOKEN and network access."
        ) from e

    settings_store = SettingsStore(Path(config.settings_file))
    try:
        settings = await run_sync(settings_store.load)
    except (OSError, ValueError) as e:
        logger.error("Cannot read settings %s: %s", settings_store.path, e)
        raise RuntimeError(
            f"Cannot read settings {settings_store.path}: {e}"
        ) from e

    engine = SyncEngine(
        client=client,
        settings_store=settings_store,
        vault_root=Path(config.vault_path),
    )
    scheduler = AutoSyncScheduler(
        engine, interval=settings.auto_sync_frequency
    )
    if scheduler.start():
        _stderr_print(
            f"  Auto sync every {settings.auto_sync_frequency:.0f} seconds"
        )
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield ServerContext(
            config=config,
            client=client,
            settings_store=settings_store,
            engine=engine,
            scheduler=scheduler,
        )
    finally:
        await scheduler.stop()
        logger.info("MCP server shutting down")
        _stderr_print("Todoist Vault Sync MCP Server shutting down.")
