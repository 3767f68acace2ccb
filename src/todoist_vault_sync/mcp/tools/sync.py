"""MCP tool handlers for the Todoist mirror.

Defines four tools:

- ``todoist_sync`` -- run one sync cycle (optionally a full resync).
- ``todoist_sync_status`` -- cursor, mirror layout, and auto sync state.
- ``todoist_archive_completed`` -- move completed task files aside.
- ``todoist_set_auto_sync`` -- change the background sync interval.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import mcp.types as types

from ...core.async_utils import run_sync
from ...sync.archive import archive_completed
from ...sync.models import FULL_SYNC_TOKEN
from ...sync.reporter import format_sync_report, report_to_json
from .registry import ToolSpec

if TYPE_CHECKING:
    from ..lifespan import ServerContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="todoist_sync",
        description=(
            "Mirror Todoist tasks into the vault as one Markdown file per "
            "task. Only changes since the last sync are fetched unless "
            "'full' is set."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "full": {
                    "type": "boolean",
                    "default": False,
                    "description": "Ignore the stored cursor and rewrite every task file",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="todoist_sync_status",
        description=(
            "Show the sync cursor, mirror directory, number of mirrored "
            "tasks, and whether auto sync is running."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    types.Tool(
        name="todoist_archive_completed",
        description=(
            "Move mirror files of completed tasks into the 'Completed' "
            "subfolder of the mirror directory."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    types.Tool(
        name="todoist_set_auto_sync",
        description=(
            "Set the background sync interval in seconds and persist it. "
            "0 disables auto sync."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "seconds": {
                    "type": "number",
                    "minimum": 0,
                    "description": "Seconds between background syncs (0 = off)",
                },
            },
            "required": ["seconds"],
        },
    ),
]


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _handle_sync(
    ctx: ServerContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``todoist_sync`` tool."""
    full = bool(args.get("full", False))
    report = await ctx.engine.run(full=full, wait=True)
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_sync_report(report))
        ],
        structuredContent=report_to_json(report),
    )


async def _handle_status(
    ctx: ServerContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``todoist_sync_status`` tool."""
    settings = await run_sync(ctx.settings_store.load)
    task_dir = ctx.vault_root / settings.directory
    mirrored = (
        sum(1 for p in task_dir.glob("*.md") if p.is_file())
        if task_dir.is_dir()
        else 0
    )
    synced_before = settings.sync_token != FULL_SYNC_TOKEN

    lines = [
        "Todoist sync status",
        f"  Vault:          {ctx.config.vault_path}",
        f"  Directory:      {settings.directory}",
        f"  Mirrored tasks: {mirrored}",
        f"  Cursor:         {settings.sync_token if synced_before else 'never synced'}",
        f"  Sync running:   {'yes' if ctx.engine.in_progress else 'no'}",
        f"  Auto sync:      "
        + (
            f"every {ctx.scheduler.interval:.0f}s"
            if ctx.scheduler.running
            else "off"
        ),
    ]
    if ctx.scheduler.breaker.is_open:
        lines.append("  Auto sync paused after repeated network failures")

    structured = {
        "vault": ctx.config.vault_path,
        "directory": settings.directory,
        "mirrored_tasks": mirrored,
        "sync_token": settings.sync_token,
        "synced_before": synced_before,
        "in_progress": ctx.engine.in_progress,
        "auto_sync_running": ctx.scheduler.running,
        "auto_sync_interval": ctx.scheduler.interval,
        "auto_sync_paused": ctx.scheduler.breaker.is_open,
    }
    return types.CallToolResult(
        content=[types.TextContent(type="text", text="\n".join(lines))],
        structuredContent=structured,
    )


async def _handle_archive(
    ctx: ServerContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``todoist_archive_completed`` tool."""
    settings = await run_sync(ctx.settings_store.load)
    moved = await run_sync(
        archive_completed, ctx.vault_root, settings.directory
    )
    if moved:
        text = f"Archived {len(moved)} completed task(s):\n" + "\n".join(
            f"  {path}" for path in moved
        )
    else:
        text = "No completed tasks to archive."
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent={"archived": moved, "count": len(moved)},
    )


async def _handle_set_auto_sync(
    ctx: ServerContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``todoist_set_auto_sync`` tool."""
    if "seconds" not in args:
        raise ValueError("seconds is required")
    try:
        seconds = float(args["seconds"])
    except (TypeError, ValueError):
        raise ValueError(
            f"Invalid seconds {args['seconds']!r}: must be a number"
        ) from None
    if seconds < 0:
        raise ValueError(f"Invalid seconds {seconds}: must be >= 0")

    await run_sync(ctx.settings_store.update, auto_sync_frequency=seconds)
    running = await ctx.scheduler.reschedule(seconds)
    text = (
        f"Auto sync every {seconds:.0f} seconds."
        if running
        else "Auto sync disabled."
    )
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent={"interval": seconds, "running": running},
    )


# ToolSpec list for registry-based dispatch
SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYNC_TOOLS[0], mutates_remote=False, handler=_handle_sync),
    ToolSpec(tool=SYNC_TOOLS[1], mutates_remote=False, handler=_handle_status),
    ToolSpec(tool=SYNC_TOOLS[2], mutates_remote=False, handler=_handle_archive),
    ToolSpec(
        tool=SYNC_TOOLS[3],
        mutates_remote=False,
        handler=_handle_set_auto_sync,
    ),
]
