"""MCP tool handlers for the Todoist mirror.

This package wraps the sync engine, archiver, and quick-add encoder with
async handlers and structured error responses.
"""

from .errors import build_error_response, translate_sync_error
from .registry import ToolRegistry, ToolSpec
from .sync import SYNC_SPECS, SYNC_TOOLS
from .tasks import TASK_SPECS, TASK_TOOLS

ALL_SPECS: list[ToolSpec] = SYNC_SPECS + TASK_SPECS

__all__ = [
    "build_error_response",
    "translate_sync_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # ToolSpec lists
    "ALL_SPECS",
    "SYNC_SPECS",
    "TASK_SPECS",
    # Tool lists
    "SYNC_TOOLS",
    "TASK_TOOLS",
]
