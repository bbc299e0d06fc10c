"""
Current Time Tool for MCP

Standard MCP Tool: current_time
- Returns the current UTC instant as an RFC 3339 timestamp
"""

from datetime import datetime, timezone

from pydantic import BaseModel

from ..jsonrpc import CallToolResult
from ..tool_registry import Tool, ToolHandler


class CurrentTimeArguments(BaseModel):
    pass


def current_timestamp() -> str:
    """Current time, e.g. ``2024-01-01T00:00:00+00:00``."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class CurrentTimeTool(ToolHandler):
    """Report the current UTC time."""

    arguments_model = CurrentTimeArguments

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="current_time",
            description="Return the current UTC time in RFC 3339 format.",
        )

    async def execute(self, arguments: CurrentTimeArguments) -> CallToolResult:
        return CallToolResult.text(current_timestamp())
