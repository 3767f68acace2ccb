"""MCP server exposing the Todoist mirror over stdio."""
