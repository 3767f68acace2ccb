"""Shared pytest fixtures for todoist-vault-sync tests."""

from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from todoist_vault_sync.config import Config
from todoist_vault_sync.sync.state import SettingsStore

load_dotenv()

_ENV_VARS = (
    "TODOIST_API_TOKEN",
    "TODOIST_VAULT",
    "TODOIST_SETTINGS_FILE",
    "TODOIST_BASE_URL",
    "TODOIST_TIMEOUT",
    "TODOIST_MAX_RETRIES",
    "TODOIST_DEBUG",
    "TODOIST_VAULT_SYNC_CONFIG",
)


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Todoist account",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Todoist account"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove Todoist env vars and run from an empty directory."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def vault(tmp_path):
    """An empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def mock_config(vault):
    """Create a Config instance pointing at the temp vault."""
    return Config(
        api_token="test-token",
        vault_path=str(vault),
        max_retries=0,
    )


@pytest.fixture
def settings_store(mock_config):
    return SettingsStore(mock_config.settings_file)


@pytest.fixture
def mock_todoist_client(mock_config):
    """Create a mock TodoistClient instance for testing."""
    from todoist_vault_sync.core.client import TodoistClient

    client = MagicMock(spec=TodoistClient)
    client.config = mock_config
    return client
