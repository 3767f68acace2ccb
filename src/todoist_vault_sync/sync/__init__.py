"""One-way Todoist -> vault mirror.

Public API for mirroring Todoist tasks into Markdown files and creating
tasks through quick add.

Architecture
------------
Todoist is authoritative.  Each cycle fetches projects and sections in
full, fetches one delta batch of tasks with the persisted cursor, writes
or deletes one file per task, and only then commits the new cursor.
Local edits to mirror files are never pushed back.

Modules:

- ``engine``     -- ``SyncEngine``: runs one reconciliation cycle.
- ``state``      -- ``SettingsStore``: settings blob and cursor store.
- ``index``      -- ``build_index``: project/section lookups.
- ``codec``      -- mirror file encoding, decoding, and ``MirrorStore``.
- ``quick_add``  -- quick-add shorthand encoder.
- ``scheduler``  -- ``AutoSyncScheduler``: periodic background sync.
- ``archive``    -- move completed task files aside.
- ``models``     -- pydantic data contracts.
- ``reporter``   -- human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from todoist_vault_sync.config import load_config
    from todoist_vault_sync.core.client import TodoistClient
    from todoist_vault_sync.sync import SettingsStore, SyncEngine

    config = load_config()
    engine = SyncEngine(
        client=TodoistClient(config),
        settings_store=SettingsStore(Path(config.settings_file)),
        vault_root=Path(config.vault_path),
    )
    report = await engine.run()
    print(format_sync_report(report))
"""

from .archive import archive_completed
from .codec import (
    MirrorStore,
    build_metadata,
    decode_mirror_file,
    encode_mirror_file,
    format_due,
    plan_change,
)
from .engine import SyncEngine
from .index import EntityIndex, build_index
from .models import (
    FULL_SYNC_TOKEN,
    DeltaBatch,
    Due,
    MirrorAction,
    MirrorChange,
    Project,
    Section,
    Settings,
    SyncReport,
    Task,
)
from .quick_add import QuickAddOptions, encode_quick_add, quick_add
from .reporter import format_sync_report, report_to_json
from .scheduler import AutoSyncScheduler
from .state import SettingsStore

__all__ = [
    "FULL_SYNC_TOKEN",
    "AutoSyncScheduler",
    "DeltaBatch",
    "Due",
    "EntityIndex",
    "MirrorAction",
    "MirrorChange",
    "MirrorStore",
    "Project",
    "QuickAddOptions",
    "Section",
    "Settings",
    "SettingsStore",
    "SyncEngine",
    "SyncReport",
    "Task",
    "archive_completed",
    "build_index",
    "build_metadata",
    "decode_mirror_file",
    "encode_mirror_file",
    "encode_quick_add",
    "format_due",
    "format_sync_report",
    "plan_change",
    "quick_add",
    "report_to_json",
]
