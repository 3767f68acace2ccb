"""Fixtures for MCP tool tests."""

from pathlib import Path

import pytest

from todoist_vault_sync.mcp.lifespan import ServerContext
from todoist_vault_sync.sync.engine import SyncEngine
from todoist_vault_sync.sync.models import DeltaBatch, Project, Task
from todoist_vault_sync.sync.scheduler import AutoSyncScheduler
from todoist_vault_sync.sync.state import SettingsStore


@pytest.fixture
def server_context(mock_config, mock_todoist_client):
    """ServerContext wired to a mocked TodoistClient and a temp vault."""
    client = mock_todoist_client
    client.get_projects.return_value = [Project(id="p1", name="Home")]
    client.get_sections.return_value = []
    client.sync.return_value = DeltaBatch(
        items=[Task(id="1", content="Buy milk", project_id="p1")],
        sync_token="tok-1",
    )
    client.quick_add.return_value = {"id": "42"}
    client.validate_connection.return_value = 1

    store = SettingsStore(Path(mock_config.settings_file))
    engine = SyncEngine(
        client=client,
        settings_store=store,
        vault_root=Path(mock_config.vault_path),
    )
    return ServerContext(
        config=mock_config,
        client=client,
        settings_store=store,
        engine=engine,
        scheduler=AutoSyncScheduler(engine),
    )
