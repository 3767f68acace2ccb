"""Core sync engine that mirrors Todoist tasks into the vault.

The ``SyncEngine`` runs one reconciliation cycle:

1. Ensures the mirror directory exists.
2. Fetches every project and section and indexes them by id.
3. Fetches one delta batch with the persisted cursor (``"*"`` for full).
4. Plans a ``MirrorChange`` per task, in the order received.
5. Applies every planned change (write or idempotent delete).
6. Commits the batch's sync token as the new cursor.

The cursor is the transaction boundary: it is committed only after the
whole batch has landed on disk.  Any failure aborts the cycle and leaves
the previous cursor in place, so the next cycle replays the same batch.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.async_utils import run_sync
from ..errors import SyncInProgressError
from .codec import MirrorStore, plan_change
from .index import EntityIndex, build_index
from .models import (
    FULL_SYNC_TOKEN,
    DeltaBatch,
    MirrorChange,
    Settings,
    SyncReport,
)
from .state import SettingsStore

if TYPE_CHECKING:
    from ..core.client import TodoistClient

logger = logging.getLogger(__name__)


class SyncEngine:
    """Run sync cycles for one vault.

    Args:
        client: TodoistClient for remote calls.
        settings_store: Settings blob holding layout options and cursor.
        vault_root: Absolute path of the vault.
    """

    def __init__(
        self,
        client: TodoistClient,
        settings_store: SettingsStore,
        vault_root: Path,
    ) -> None:
        self.client = client
        self.settings_store = settings_store
        self.vault_root = Path(vault_root)
        self.mirror = MirrorStore(self.vault_root)
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, full: bool = False, wait: bool = True) -> SyncReport:
        """Execute one sync cycle.

        Args:
            full: Ignore the stored cursor and re-derive every mirror file.
            wait: If another cycle is running, wait for it to finish
                (``True``) or raise ``SyncInProgressError`` (``False``).

        Returns:
            A ``SyncReport`` describing the applied changes.

        Raises:
            SyncInProgressError: A cycle is running and *wait* is false.
            TransportError, AuthError, RemoteError, ProtocolError: A remote
                call failed; the cursor is unchanged.
            LocalIOError: A mirror file could not be written or removed;
                the cursor is unchanged.
        """
        if not wait and self._lock.locked():
            raise SyncInProgressError("A sync cycle is already running")

        async with self._lock:
            return await self._run_cycle(full)

    async def _run_cycle(self, full: bool) -> SyncReport:
        started_at = datetime.now(timezone.utc).isoformat()
        settings = await run_sync(self.settings_store.load)
        cursor = FULL_SYNC_TOKEN if full else settings.sync_token
        logger.info(
            "Syncing with Todoist (cursor=%s%s)",
            cursor,
            ", full" if full else "",
        )

        try:
            await run_sync(self.mirror.ensure_directory, settings.directory)

            index = await self._fetch_index()
            logger.info("Fetching tasks...")
            batch: DeltaBatch = await run_sync(self.client.sync, cursor)
            logger.info("Received %d changed task(s)", len(batch.items))

            changes = self._plan(batch, index, settings)

            logger.info("Writing task files...")
            for change in changes:
                await run_sync(self.mirror.apply, change)

            await run_sync(self.settings_store.set_cursor, batch.sync_token)
        except Exception:
            logger.exception("Sync aborted; cursor left at %s", settings.sync_token)
            raise

        report = SyncReport(
            full_sync=full or cursor == FULL_SYNC_TOKEN,
            cursor_before=cursor,
            cursor_after=batch.sync_token,
            changes=changes,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "Sync complete: %d written, %d deleted",
            len(report.written),
            len(report.deleted),
        )
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _fetch_index(self) -> EntityIndex:
        """Fetch projects and sections in full and index them."""
        logger.info("Fetching projects...")
        projects = await run_sync(self.client.get_projects)
        logger.info("Fetching sections...")
        sections = await run_sync(self.client.get_sections)
        logger.debug(
            "Indexed %d project(s), %d section(s)",
            len(projects),
            len(sections),
        )
        return build_index(projects, sections)

    def _plan(
        self, batch: DeltaBatch, index: EntityIndex, settings: Settings
    ) -> list[MirrorChange]:
        """Turn the batch into ordered mirror changes without touching disk."""
        changes: list[MirrorChange] = []
        for task in batch.items:
            project, section = index.resolve(task)
            if not task.is_deleted:
                if task.project_id and project is None:
                    logger.warning(
                        "Task %s references unknown project %s",
                        task.id,
                        task.project_id,
                    )
                if task.section_id and section is None:
                    logger.warning(
                        "Task %s references unknown section %s",
                        task.id,
                        task.section_id,
                    )
            changes.append(plan_change(task, project, section, settings))
        return changes
