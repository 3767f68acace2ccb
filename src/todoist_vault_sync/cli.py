"""Command line interface for the Todoist vault mirror.

Every subcommand resolves configuration the same way the MCP server does
(CLI > env vars > .env > YAML > settings blob > defaults) and prints
human-readable results on stdout.  Logs go to stderr.

Exit codes: 0 on success, 1 on any error, 2 when Todoist rejects the token.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config, resolve_vault_paths
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import build_config
from .core.client import TodoistClient
from .errors import AuthError, TodoistSyncError
from .logger import setup_logging
from .sync.archive import archive_completed
from .sync.engine import SyncEngine
from .sync.models import FULL_SYNC_TOKEN, Settings
from .sync.quick_add import (
    QuickAddOptions,
    encode_quick_add,
    quick_add,
    task_request_from_file,
)
from .sync.reporter import format_sync_report
from .sync.scheduler import AutoSyncScheduler
from .sync.state import SettingsStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_AUTH = 2


# ---------------------------------------------------------------------------
# Configuration helpers
# ---------------------------------------------------------------------------


def _yaml_fallbacks() -> dict[str, Any] | None:
    if not discover_config_files():
        return None
    return build_config(load_hierarchical_config()).fallbacks()


def _load_config(args: argparse.Namespace) -> Config:
    return load_config(
        api_token=args.token,
        vault_path=args.vault,
        settings_file=args.settings_file,
        debug=args.debug,
        yaml_fallbacks=_yaml_fallbacks(),
    )


def _settings_store(args: argparse.Namespace) -> tuple[Path, SettingsStore]:
    """Vault root and settings store, without requiring a token."""
    vault, settings_file = resolve_vault_paths(
        args.vault, args.settings_file, _yaml_fallbacks()
    )
    return Path(vault), SettingsStore(Path(settings_file))


def _build_engine(config: Config) -> SyncEngine:
    return SyncEngine(
        client=TodoistClient(config),
        settings_store=SettingsStore(Path(config.settings_file)),
        vault_root=Path(config.vault_path),
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def cmd_sync(args: argparse.Namespace) -> int:
    engine = _build_engine(_load_config(args))
    report = asyncio.run(engine.run(full=args.all))
    print(format_sync_report(report))
    return EXIT_OK


async def _watch(engine: SyncEngine, interval: float) -> None:
    scheduler = AutoSyncScheduler(engine, interval=interval)
    await scheduler.tick()
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


def cmd_watch(args: argparse.Namespace) -> int:
    config = _load_config(args)
    engine = _build_engine(config)
    interval = args.interval
    if interval is None:
        interval = engine.settings_store.load().auto_sync_frequency
    if interval <= 0:
        raise ValueError(
            "Auto sync interval must be positive. Pass --interval or "
            "run 'settings set auto_sync_frequency <seconds>'."
        )
    print(
        f"Syncing every {interval:.0f} seconds. Press Ctrl+C to stop.",
        file=sys.stderr,
    )
    try:
        asyncio.run(_watch(engine, interval))
    except KeyboardInterrupt:
        print("\nStopped.", file=sys.stderr)
    return EXIT_OK


def cmd_quick_add(args: argparse.Namespace) -> int:
    options = QuickAddOptions(
        due=args.due,
        project=args.project,
        priority=args.priority,
        label=args.label,
        recurrence=args.recurrence,
    )
    # Validate before touching config so bad input fails fast
    text = encode_quick_add(args.title, args.description, options)
    client = TodoistClient(_load_config(args))
    created = client.quick_add(text, auto_reminder=True)
    print(f"Created task: {text}")
    if created.get("id"):
        print(f"  id: {created['id']}")
    return EXIT_OK


def cmd_create_from_file(args: argparse.Namespace) -> int:
    config = _load_config(args)
    title, description, options = task_request_from_file(
        Path(config.vault_path), args.path
    )
    text, created = quick_add(
        TodoistClient(config), title, description, options
    )
    print(f"Created task: {text}")
    if created.get("id"):
        print(f"  id: {created['id']}")
    return EXIT_OK


def cmd_archive(args: argparse.Namespace) -> int:
    vault, store = _settings_store(args)
    moved = archive_completed(vault, store.load().directory)
    if not moved:
        print("No completed tasks to archive.")
        return EXIT_OK
    print(f"Archived {len(moved)} completed task(s):")
    for path in moved:
        print(f"  {path}")
    return EXIT_OK


def cmd_status(args: argparse.Namespace) -> int:
    vault, store = _settings_store(args)
    settings = store.load()
    task_dir = vault / settings.directory
    mirrored = (
        sum(1 for p in task_dir.glob("*.md") if p.is_file())
        if task_dir.is_dir()
        else 0
    )
    cursor = settings.sync_token
    print(f"Vault:          {vault}")
    print(f"Settings:       {store.path}")
    print(f"Directory:      {settings.directory}")
    print(f"Mirrored tasks: {mirrored}")
    print(
        f"Cursor:         {cursor if cursor != FULL_SYNC_TOKEN else 'never synced'}"
    )
    frequency = settings.auto_sync_frequency
    print(
        f"Auto sync:      {f'every {frequency:.0f}s' if frequency else 'off'}"
    )
    return EXIT_OK


def _masked(settings: Settings) -> dict[str, Any]:
    data = settings.model_dump()
    if data["key"]:
        data["key"] = data["key"][:4] + "..."
    return data


def cmd_settings_show(args: argparse.Namespace) -> int:
    _, store = _settings_store(args)
    print(json.dumps(_masked(store.load()), indent=2))
    return EXIT_OK


def cmd_settings_set(args: argparse.Namespace) -> int:
    _, store = _settings_store(args)
    updated = store.update(**{args.key: args.value})
    print(json.dumps(_masked(updated), indent=2))
    return EXIT_OK


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todoist-vault-sync",
        description="Mirror Todoist tasks into a notes vault and create tasks via quick add",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch changes since the last sync
  todoist-vault-sync --vault ~/Notes sync

  # Rewrite every task file
  todoist-vault-sync sync --all

  # Create a task
  todoist-vault-sync quick-add "Buy milk" --project Home --priority 1 --due 2024-01-02

  # Enable auto sync for the MCP server and 'watch'
  todoist-vault-sync settings set auto_sync_frequency 300
        """,
    )
    parser.add_argument("--vault", help="Vault root directory (env: TODOIST_VAULT)")
    parser.add_argument(
        "--token",
        help="Todoist API token (env: TODOIST_API_TOKEN)"
        " (visible in process list -- prefer the env var)",
    )
    parser.add_argument(
        "--settings-file",
        help="Settings JSON path (default: <vault>/.todoist_vault_sync/settings.json)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"todoist-vault-sync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sync", help="Mirror Todoist tasks into the vault")
    p.add_argument(
        "--all",
        action="store_true",
        help="Ignore the stored cursor and rewrite every task file",
    )
    p.set_defaults(func=cmd_sync)

    p = sub.add_parser("watch", help="Sync now, then periodically until stopped")
    p.add_argument(
        "--interval",
        type=float,
        help="Seconds between syncs (default: auto_sync_frequency setting)",
    )
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("quick-add", help="Create a Todoist task")
    p.add_argument("title", help="Task title")
    p.add_argument("--description", help="Task description")
    p.add_argument("--due", help="Due date, YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS")
    p.add_argument("--project", help="Project name (single word)")
    p.add_argument(
        "--priority", type=int, choices=range(1, 5), help="Priority 1-4"
    )
    p.add_argument("--label", help="Label name (single word)")
    p.add_argument("--recurrence", help="Recurrence, e.g. 'every monday'")
    p.set_defaults(func=cmd_quick_add)

    p = sub.add_parser(
        "create-from-file", help="Create a Todoist task from a vault note"
    )
    p.add_argument("path", help="Vault-relative path of the note")
    p.set_defaults(func=cmd_create_from_file)

    p = sub.add_parser(
        "archive", help="Move completed task files into the Completed folder"
    )
    p.set_defaults(func=cmd_archive)

    p = sub.add_parser("status", help="Show cursor and mirror status")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("settings", help="Show or change stored settings")
    settings_sub = p.add_subparsers(dest="settings_command", required=True)
    sp = settings_sub.add_parser("show", help="Print the settings blob")
    sp.set_defaults(func=cmd_settings_show)
    sp = settings_sub.add_parser("set", help="Change one setting")
    sp.add_argument("key", choices=sorted(Settings.model_fields))
    sp.add_argument("value")
    sp.set_defaults(func=cmd_settings_set)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the subcommand, and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    setup_logging(mode="cli", debug=args.debug, log_file=args.log_file)

    try:
        return args.func(args)
    except AuthError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(
            "  Check TODOIST_API_TOKEN or run 'settings set key <token>'.",
            file=sys.stderr,
        )
        return EXIT_AUTH
    except (TodoistSyncError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
