"""
Reverse Text Tool for MCP

Standard MCP Tool: reverse_text
- Reverses the input by Unicode code point, so multi-byte characters stay intact
"""

from pydantic import BaseModel

from ..jsonrpc import CallToolResult
from ..tool_registry import Tool, ToolHandler, ToolParameter, ToolParameterType


class ReverseArguments(BaseModel):
    text: str


def reverse_text(text: str) -> str:
    return text[::-1]


class ReverseTextTool(ToolHandler):
    """Reverse the characters of a string."""

    arguments_model = ReverseArguments

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="reverse_text",
            description="Reverse the characters of the provided text.",
            parameters=[
                ToolParameter(
                    name="text",
                    type=ToolParameterType.STRING,
                    description="Text to reverse",
                    required=True,
                ),
            ],
        )

    async def execute(self, arguments: ReverseArguments) -> CallToolResult:
        return CallToolResult.text(reverse_text(arguments.text))
