"""MCP Server for the Todoist vault mirror using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents sync Todoist into the vault and create tasks via quick add.

Transport: stdio (for Claude Desktop/Code integration)
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..core.async_utils import run_sync
from ..logger import DEFAULT_MCP_LOG_FILE, setup_logging
from .lifespan import ServerContext, server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

SERVER_NAME = "todoist-vault-sync"

server = Server(SERVER_NAME)

# Initialized in main(), from the lifespan context
_context: ServerContext | None = None

_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool (always available)
# ---------------------------------------------------------------------------


async def _handle_ping(
    ctx: ServerContext, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- test Todoist connectivity."""
    try:
        project_count = await run_sync(ctx.client.validate_connection)
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Todoist connected successfully. {project_count} project(s) visible.",
                )
            ]
        )
    except Exception as e:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Todoist connection failed: {e}. Check TODOIST_API_TOKEN.",
                )
            ],
            isError=True,
        )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test Todoist connectivity and return the number of visible projects",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    mutates_remote=False,
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_context() -> ServerContext:
    """Get the global ServerContext.

    Raises:
        RuntimeError: If the server lifespan has not started.
    """
    if _context is None:
        raise RuntimeError(
            "Server context not initialized. Server lifespan not started."
        )
    return _context


def set_context(ctx: ServerContext | None) -> None:
    global _context
    _context = ctx


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


def build_registry(read_only: bool = False) -> ToolRegistry:
    """Build the registry of every tool, minus task-creating ones if read-only."""
    return ToolRegistry([PING_SPEC] + ALL_SPECS, read_only=read_only)


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available tools from the ToolRegistry."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with tool output content and optional isError flag.
    """
    ctx = get_context()
    try:
        return await get_registry().call_tool(name, arguments, ctx)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Logging goes to a file only, never stdout.  The lifespan validates the
    Todoist token and starts auto sync before the transport opens.

    Args:
        config_overrides: Optional dict with config values to override
            (api_token, vault_path, settings_file, debug, log_file, read_only)
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    read_only = overrides.pop("read_only", False)

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp", debug=overrides.get("debug", False), log_file=log_file
    )

    registry = build_registry(read_only=read_only)
    total = len(ALL_SPECS) + 1
    logger.info(
        "Registered %d tools (of %d total)", registry.tool_count(), total
    )
    if read_only:
        print(
            f"Read-only mode ({registry.tool_count()} of {total} tools enabled)",
            file=sys.stderr,
        )
    set_registry(registry)

    # set_context() is called here rather than in the lifespan so running
    # this file as __main__ still updates the module the handlers read.
    async with server_lifespan(config_overrides=overrides) as ctx:
        set_context(ctx)
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(
                    read_stream, write_stream, init_options
                )
        finally:
            set_context(None)
            set_registry(None)


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Todoist Vault Sync MCP Server - mirror Todoist tasks into a notes vault",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or config.yml)
  todoist-vault-sync-mcp

  # Point at a vault
  todoist-vault-sync-mcp --vault ~/Notes

  # Only expose tools that never create Todoist tasks
  todoist-vault-sync-mcp --read-only

  # Custom log file location
  todoist-vault-sync-mcp --log-file /var/log/todoist-vault-sync.log

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )

    parser.add_argument(
        "--vault",
        help="Vault root directory (takes precedence over TODOIST_VAULT env var and config files)",
    )
    parser.add_argument(
        "--token",
        help="Todoist API token (takes precedence over TODOIST_API_TOKEN env var and config files)"
        " (visible in process list -- prefer TODOIST_API_TOKEN env var for security)",
    )
    parser.add_argument(
        "--settings-file",
        help="Settings JSON path (default: <vault>/.todoist_vault_sync/settings.json)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Hide tools that create Todoist tasks",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        default=DEFAULT_MCP_LOG_FILE,
        help=f"Log file path (default: {DEFAULT_MCP_LOG_FILE})",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"todoist-vault-sync-mcp version {__version__}",
    )

    args = parser.parse_args()

    config_overrides = {}
    if args.vault:
        config_overrides["vault_path"] = args.vault
    if args.token:
        config_overrides["api_token"] = args.token
    if args.settings_file:
        config_overrides["settings_file"] = args.settings_file
    if args.debug:
        config_overrides["debug"] = True

    if config_overrides:
        override_keys = [k for k in config_overrides if k != "api_token"]
        if "api_token" in config_overrides:
            override_keys.append("api_token (hidden)")
        print(
            f"Config overrides from CLI: {', '.join(override_keys)}",
            file=sys.stderr,
        )

    config_overrides["log_file"] = args.log_file
    config_overrides["read_only"] = args.read_only

    try:
        asyncio.run(main(config_overrides=config_overrides))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
