"""Tests for ToolSpec and ToolRegistry."""

import mcp.types as types
import pytest

from todoist_vault_sync.errors import (
    AuthError,
    LocalIOError,
    SyncInProgressError,
    TransportError,
)
from todoist_vault_sync.mcp.tools import ALL_SPECS
from todoist_vault_sync.mcp.tools.registry import ToolRegistry, ToolSpec


def _spec(name, mutates_remote=False, error=None):
    async def handler(ctx, args):
        if error is not None:
            raise error
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=f"{name}:{args}")]
        )

    return ToolSpec(
        tool=types.Tool(
            name=name,
            description=name,
            inputSchema={"type": "object", "properties": {}},
        ),
        mutates_remote=mutates_remote,
        handler=handler,
    )


def _text(result):
    return result.content[0].text


class TestFiltering:
    def test_all_tools_by_default(self):
        registry = ToolRegistry([_spec("a"), _spec("b", mutates_remote=True)])
        assert [t.name for t in registry.list_tools()] == ["a", "b"]
        assert registry.tool_count() == 2

    def test_read_only_hides_mutating_tools(self):
        registry = ToolRegistry(
            [_spec("a"), _spec("b", mutates_remote=True)], read_only=True
        )
        assert [t.name for t in registry.list_tools()] == ["a"]

    def test_read_only_hides_task_creation(self):
        names = {t.name for t in ToolRegistry(ALL_SPECS, read_only=True).list_tools()}
        assert names == {
            "todoist_sync",
            "todoist_sync_status",
            "todoist_archive_completed",
            "todoist_set_auto_sync",
        }

    def test_full_tool_set(self):
        names = {t.name for t in ToolRegistry(ALL_SPECS).list_tools()}
        assert {"todoist_quick_add", "todoist_create_from_file"} <= names


class TestCallTool:
    async def test_dispatch(self):
        registry = ToolRegistry([_spec("a")])
        result = await registry.call_tool("a", None, ctx=None)
        assert _text(result) == "a:{}"
        assert not result.isError

    async def test_unknown_tool_raises(self):
        with pytest.raises(ValueError, match="Unknown tool"):
            await ToolRegistry([]).call_tool("nope", {}, ctx=None)

    async def test_filtered_tool_is_unknown(self):
        registry = ToolRegistry([_spec("b", mutates_remote=True)], read_only=True)
        with pytest.raises(ValueError):
            await registry.call_tool("b", {}, ctx=None)

    @pytest.mark.parametrize(
        "error,error_type",
        [
            (AuthError("bad token"), "auth_error"),
            (TransportError("offline"), "transport_error"),
            (SyncInProgressError("busy"), "busy"),
            (LocalIOError("read-only vault"), "local_io_error"),
            (ValueError("bad arg"), "validation_error"),
            (RuntimeError("surprise"), "server_error"),
        ],
    )
    async def test_errors_translated(self, error, error_type):
        registry = ToolRegistry([_spec("a", error=error)])
        result = await registry.call_tool("a", {}, ctx=None)
        assert result.isError
        assert _text(result).startswith(f"Error ({error_type}): {error}")
        assert "Action:" in _text(result)
