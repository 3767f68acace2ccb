"""Sync report formatting functions.

- ``format_sync_report`` -- human-readable post-sync summary.
- ``report_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport

# Per-file listings are truncated past this many entries.
MAX_LISTED = 20


def _list_paths(title: str, paths: list[str]) -> list[str]:
    lines = [f"{title}:"]
    for path in paths[:MAX_LISTED]:
        lines.append(f"  {path}")
    if len(paths) > MAX_LISTED:
        lines.append(f"  ... ({len(paths) - MAX_LISTED} more)")
    lines.append("")
    return lines


def format_sync_report(report: SyncReport) -> str:
    """Format a completed sync cycle as human-readable text.

    Sections are only included when they contain at least one change.
    """
    lines: list[str] = []

    header = "Todoist sync report"
    if report.full_sync:
        header += " (FULL)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append(f"Cursor: {report.cursor_before} -> {report.cursor_after}")
    lines.append("")

    written = [c.path for c in report.written]
    deleted = [c.path for c in report.deleted]
    lines.append(
        f"Applied {len(report.changes)} change(s): "
        f"{len(written)} written, {len(deleted)} deleted"
    )
    lines.append("")

    if written:
        lines.extend(_list_paths("Written", written))
    if deleted:
        lines.extend(_list_paths("Deleted", deleted))
    if not report.changes:
        lines.append("No task changes since last sync.")

    return "\n".join(lines).rstrip()


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.
    """
    return {
        "full_sync": report.full_sync,
        "cursor_before": report.cursor_before,
        "cursor_after": report.cursor_after,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.changes),
            "written": len(report.written),
            "deleted": len(report.deleted),
        },
        "changes": [
            {
                "task_id": c.task_id,
                "action": c.action.value,
                "path": c.path,
            }
            for c in report.changes
        ],
    }
