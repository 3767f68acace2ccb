"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so agents can
recover from failures without human intervention.
"""

import mcp.types as types

from ...errors import (
    AuthError,
    LocalIOError,
    ProtocolError,
    RemoteError,
    SyncInProgressError,
    TodoistSyncError,
    TransportError,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (auth_error, transport_error,
            validation_error, busy, local_io_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("busy", "A sync cycle is already running", "Retry in a few seconds.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_sync_error(error: TodoistSyncError) -> types.CallToolResult:
    """Translate a sync-layer exception into a structured error response."""
    match error:
        case AuthError():
            return build_error_response(
                "auth_error",
                str(error),
                "Check TODOIST_API_TOKEN or the 'key' setting, then retry.",
            )
        case TransportError():
            return build_error_response(
                "transport_error",
                str(error),
                "Todoist is unreachable or rate limiting; retry later.",
            )
        case SyncInProgressError():
            return build_error_response(
                "busy",
                str(error),
                "Retry once the running sync has finished.",
            )
        case LocalIOError():
            return build_error_response(
                "local_io_error",
                str(error),
                "Check that the vault directory is writable, then retry.",
            )
        case RemoteError() | ProtocolError():
            return build_error_response(
                "remote_error",
                str(error),
                "Todoist returned an unexpected response; retry later.",
            )
        case _:
            return build_error_response(
                "server_error", str(error), "Retry later."
            )
