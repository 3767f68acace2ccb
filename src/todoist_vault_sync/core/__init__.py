"""Todoist client and helpers shared between the CLI and MCP server."""

from .async_utils import run_sync
from .client import TodoistClient

__all__ = ["TodoistClient", "run_sync"]
