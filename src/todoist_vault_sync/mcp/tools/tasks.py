"""MCP tool handlers that create Todoist tasks.

Both tools go through the quick-add endpoint, so Todoist itself parses
the project, label, priority, and due date out of the encoded text.
They are hidden when the server runs with ``--read-only``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import mcp.types as types

from ...core.async_utils import run_sync
from ...sync.quick_add import (
    QuickAddOptions,
    quick_add,
    task_request_from_file,
)
from .registry import ToolSpec

if TYPE_CHECKING:
    from ..lifespan import ServerContext

logger = logging.getLogger(__name__)

_OPTION_PROPERTIES: dict[str, Any] = {
    "due": {
        "type": "string",
        "description": "Due date, YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS",
    },
    "project": {
        "type": "string",
        "description": "Project name (single word, without '#')",
    },
    "priority": {
        "type": "integer",
        "minimum": 1,
        "maximum": 4,
        "description": "Priority 1-4 as typed in quick add (p1 is highest)",
    },
    "label": {
        "type": "string",
        "description": "Label name (single word, without '@')",
    },
    "recurrence": {
        "type": "string",
        "description": "Recurrence text, e.g. 'every monday'",
    },
}


TASK_TOOLS: list[types.Tool] = [
    types.Tool(
        name="todoist_quick_add",
        description=(
            "Create a Todoist task from a title and optional due date, "
            "project, priority, label, recurrence, and description."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=False,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "Task title (single line)",
                },
                "description": {
                    "type": "string",
                    "description": "Task description",
                },
                **_OPTION_PROPERTIES,
            },
            "required": ["title"],
        },
    ),
    types.Tool(
        name="todoist_create_from_file",
        description=(
            "Create a Todoist task from a vault note. The note's file name "
            "becomes the title, its frontmatter supplies due, project, "
            "priority, label, recurrence and description, and the task "
            "links back to the note."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=False,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Vault-relative path of the note, e.g. 'Notes/Plan.md'",
                },
            },
            "required": ["path"],
        },
    ),
]


def _created_result(text: str, created: dict[str, Any]) -> types.CallToolResult:
    task_id = created.get("id")
    message = f"Created task: {text}"
    if task_id:
        message += f"\n  id: {task_id}"
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=message)],
        structuredContent={"text": text, "task_id": task_id},
    )


async def _handle_quick_add(
    ctx: ServerContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``todoist_quick_add`` tool."""
    title = args.get("title")
    if not title:
        raise ValueError("title is required")
    options = QuickAddOptions.model_validate(args)
    description = args.get("description")

    text, created = await run_sync(
        quick_add, ctx.client, title, description, options
    )
    return _created_result(text, created)


async def _handle_create_from_file(
    ctx: ServerContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``todoist_create_from_file`` tool."""
    rel_path = args.get("path")
    if not rel_path:
        raise ValueError("path is required")
    title, description, options = await run_sync(
        task_request_from_file, ctx.vault_root, rel_path
    )

    text, created = await run_sync(
        quick_add, ctx.client, title, description, options
    )
    return _created_result(text, created)


# ToolSpec list for registry-based dispatch
TASK_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=TASK_TOOLS[0], mutates_remote=True, handler=_handle_quick_add
    ),
    ToolSpec(
        tool=TASK_TOOLS[1],
        mutates_remote=True,
        handler=_handle_create_from_file,
    ),
]
