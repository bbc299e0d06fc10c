"""
MCP Tools Package

Tool handlers served by the Inferenco MCP server.
"""

from .echo_tool import EchoTool
from .reverse_text_tool import ReverseTextTool
from .increment_tool import IncrementTool
from .current_time_tool import CurrentTimeTool
from .roll_dice_tool import RollDiceTool
from .fetch_document_tool import FetchDocumentTool

__all__ = [
    "EchoTool",
    "ReverseTextTool",
    "IncrementTool",
    "CurrentTimeTool",
    "RollDiceTool",
    "FetchDocumentTool",
]
