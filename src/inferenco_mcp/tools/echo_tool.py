"""
Echo Tool for MCP

Standard MCP Tool: echo
- Returns the provided message unchanged as one text block
"""

from pydantic import BaseModel

from ..jsonrpc import CallToolResult
from ..tool_registry import Tool, ToolHandler, ToolParameter, ToolParameterType


class EchoArguments(BaseModel):
    message: str


class EchoTool(ToolHandler):
    """Echo back the provided message."""

    arguments_model = EchoArguments

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="echo",
            description="Echo back the provided message.",
            parameters=[
                ToolParameter(
                    name="message",
                    type=ToolParameterType.STRING,
                    description="Message to echo back",
                    required=True,
                ),
            ],
        )

    async def execute(self, arguments: EchoArguments) -> CallToolResult:
        return CallToolResult.text(arguments.message)
