"""
Increment Tool for MCP

Standard MCP Tool: increment
- Adds one to the session counter and returns the new value
- Concurrent calls are serialized by the session's counter lock
"""

from pydantic import BaseModel

from common.logging import get_logger
from ..jsonrpc import CallToolResult
from ..session import SessionState
from ..tool_registry import Tool, ToolHandler

logger = get_logger(__name__)


class IncrementArguments(BaseModel):
    pass


class IncrementTool(ToolHandler):
    """Increment the in-memory counter."""

    arguments_model = IncrementArguments

    def __init__(self, session: SessionState):
        self.session = session

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="increment",
            description="Increment an in-memory counter and return the new value.",
        )

    async def execute(self, arguments: IncrementArguments) -> CallToolResult:
        value = await self.session.increment()
        logger.debug(event="counter_incremented", value=value)
        return CallToolResult.text(str(value))
