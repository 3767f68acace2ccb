"""Tests for the quick-add and create-from-file MCP tools."""

from todoist_vault_sync.errors import AuthError
from todoist_vault_sync.mcp.tools import ALL_SPECS, ToolRegistry

REGISTRY = ToolRegistry(ALL_SPECS)


async def test_quick_add(server_context):
    result = await REGISTRY.call_tool(
        "todoist_quick_add",
        {
            "title": "Buy milk",
            "priority": 1,
            "project": "Home",
            "due": "2024-01-02T15:30:00",
            "description": "note",
        },
        server_context,
    )
    assert not result.isError
    server_context.client.quick_add.assert_called_once_with(
        "Buy milk p1 #Home 2024-01-02 15:30 // note", auto_reminder=True
    )
    assert result.structuredContent == {
        "text": "Buy milk p1 #Home 2024-01-02 15:30 // note",
        "task_id": "42",
    }


async def test_quick_add_requires_title(server_context):
    result = await REGISTRY.call_tool("todoist_quick_add", {}, server_context)
    assert result.isError
    server_context.client.quick_add.assert_not_called()


async def test_quick_add_rejects_bad_label(server_context):
    result = await REGISTRY.call_tool(
        "todoist_quick_add",
        {"title": "x", "label": "two words"},
        server_context,
    )
    assert result.isError
    assert "validation_error" in result.content[0].text
    server_context.client.quick_add.assert_not_called()


async def test_quick_add_auth_failure(server_context):
    server_context.client.quick_add.side_effect = AuthError("rejected")
    result = await REGISTRY.call_tool(
        "todoist_quick_add", {"title": "x"}, server_context
    )
    assert result.isError
    assert "auth_error" in result.content[0].text


async def test_create_from_file(server_context):
    note = server_context.vault_root / "Notes" / "Call mum.md"
    note.parent.mkdir()
    note.write_text("---\nlabel: family\n---\nbody\n")

    result = await REGISTRY.call_tool(
        "todoist_create_from_file", {"path": "Notes/Call mum.md"}, server_context
    )

    assert not result.isError
    text = server_context.client.quick_add.call_args.args[0]
    assert text.startswith("Call mum @family // obsidian://open?vault=vault")
    assert text.endswith("&file=Notes/Call%20mum.md")


async def test_create_from_missing_file(server_context):
    result = await REGISTRY.call_tool(
        "todoist_create_from_file", {"path": "Nope.md"}, server_context
    )
    assert result.isError
    assert "not found" in result.content[0].text
