"""Tests for the todoist-vault-sync command line interface."""

import json
from unittest.mock import MagicMock, patch

import pytest

from todoist_vault_sync.cli import EXIT_AUTH, EXIT_ERROR, EXIT_OK, main
from todoist_vault_sync.config import default_settings_file
from todoist_vault_sync.errors import AuthError
from todoist_vault_sync.sync.models import DeltaBatch, Project, Task
from todoist_vault_sync.sync.state import SettingsStore

CLIENT = "todoist_vault_sync.cli.TodoistClient"


def _fake_client(*tasks, token="tok-1"):
    client = MagicMock()
    client.get_projects.return_value = [Project(id="p1", name="Home")]
    client.get_sections.return_value = []
    client.sync.return_value = DeltaBatch(
        items=[Task.model_validate(t) for t in tasks], sync_token=token
    )
    client.quick_add.return_value = {"id": "42"}
    return client


@pytest.fixture
def cli_env(clean_env, vault):
    clean_env.setenv("TODOIST_VAULT", str(vault))
    clean_env.setenv("TODOIST_API_TOKEN", "env-token")
    return vault


class TestSync:
    def test_sync_writes_files_and_reports(self, cli_env, capsys):
        client = _fake_client({"id": "1", "content": "Buy milk"})
        with patch(CLIENT, return_value=client):
            assert main(["sync"]) == EXIT_OK

        assert (cli_env / "Todo" / "1.md").exists()
        assert "1 written" in capsys.readouterr().out
        assert SettingsStore(default_settings_file(cli_env)).get_cursor() == "tok-1"

    def test_sync_all_requests_full_snapshot(self, cli_env):
        SettingsStore(default_settings_file(cli_env)).set_cursor("tok-0")
        client = _fake_client()
        with patch(CLIENT, return_value=client):
            assert main(["sync", "--all"]) == EXIT_OK
        client.sync.assert_called_once_with("*")

    def test_auth_error_exit_code(self, cli_env, capsys):
        client = _fake_client()
        client.get_projects.side_effect = AuthError("rejected")
        with patch(CLIENT, return_value=client):
            assert main(["sync"]) == EXIT_AUTH
        assert "rejected" in capsys.readouterr().err

    def test_missing_vault(self, clean_env, capsys):
        assert main(["--token", "t", "sync"]) == EXIT_ERROR
        assert "Vault path not found" in capsys.readouterr().err


class TestQuickAdd:
    def test_quick_add(self, cli_env, capsys):
        client = _fake_client()
        with patch(CLIENT, return_value=client):
            code = main(
                [
                    "quick-add",
                    "Buy milk",
                    "--priority",
                    "1",
                    "--project",
                    "Home",
                    "--due",
                    "2024-01-02T15:30:00",
                    "--description",
                    "note",
                ]
            )
        assert code == EXIT_OK
        client.quick_add.assert_called_once_with(
            "Buy milk p1 #Home 2024-01-02 15:30 // note", auto_reminder=True
        )
        out = capsys.readouterr().out
        assert "Created task: Buy milk p1 #Home 2024-01-02 15:30 // note" in out
        assert "id: 42" in out

    def test_invalid_project_fails_before_remote_call(self, cli_env, capsys):
        with patch(CLIENT) as client_cls:
            code = main(["quick-add", "x", "--project", "Two words"])
        assert code == EXIT_ERROR
        client_cls.assert_not_called()

    def test_priority_out_of_range_is_usage_error(self, cli_env):
        with pytest.raises(SystemExit) as exc_info:
            main(["quick-add", "x", "--priority", "5"])
        assert exc_info.value.code == 2

    def test_create_from_file(self, cli_env, capsys):
        (cli_env / "Plan.md").write_text("---\nproject: Work\n---\n")
        client = _fake_client()
        with patch(CLIENT, return_value=client):
            assert main(["create-from-file", "Plan.md"]) == EXIT_OK
        text = client.quick_add.call_args.args[0]
        assert text.startswith("Plan #Work // obsidian://open?vault=vault")
        assert f"Created task: {text}" in capsys.readouterr().out


class TestOfflineCommands:
    def test_settings_set_and_show(self, clean_env, vault, capsys):
        assert (
            main(["--vault", str(vault), "settings", "set", "directory", "Inbox"])
            == EXIT_OK
        )
        capsys.readouterr()
        assert main(["--vault", str(vault), "settings", "show"]) == EXIT_OK
        shown = json.loads(capsys.readouterr().out)
        assert shown["directory"] == "Inbox"

    def test_settings_key_is_masked(self, clean_env, vault, capsys):
        main(["--vault", str(vault), "settings", "set", "key", "secret-token"])
        out = capsys.readouterr().out
        assert "secret-token" not in out
        assert json.loads(out)["key"] == "secr..."

    def test_settings_invalid_value(self, clean_env, vault, capsys):
        code = main(
            ["--vault", str(vault), "settings", "set", "auto_sync_frequency", "-5"]
        )
        assert code == EXIT_ERROR

    def test_unknown_setting_is_usage_error(self, clean_env, vault):
        with pytest.raises(SystemExit):
            main(["--vault", str(vault), "settings", "set", "colour", "red"])

    def test_status_needs_no_token(self, clean_env, vault, capsys):
        (vault / "Todo").mkdir()
        (vault / "Todo" / "1.md").write_text("x")
        assert main(["--vault", str(vault), "status"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Mirrored tasks: 1" in out
        assert "never synced" in out

    def test_archive(self, clean_env, vault, capsys):
        (vault / "Todo").mkdir()
        (vault / "Todo" / "1.md").write_text("---\ncompleted: 2024-01-02\n---\n")
        assert main(["--vault", str(vault), "archive"]) == EXIT_OK
        assert "Todo/Completed/1.md" in capsys.readouterr().out

    def test_watch_requires_interval(self, cli_env, capsys):
        assert main(["watch"]) == EXIT_ERROR
        assert "interval must be positive" in capsys.readouterr().err
