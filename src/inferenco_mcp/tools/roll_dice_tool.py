"""
Roll Dice Tool for MCP

Standard MCP Tool: roll_dice
- Rolls a die with the requested number of sides (default 6)
- Side counts below 2 are clamped up to 2 rather than rejected
"""

import random
from typing import Optional, Tuple

from pydantic import BaseModel

from ..jsonrpc import CallToolResult
from ..tool_registry import Tool, ToolHandler, ToolParameter, ToolParameterType

DEFAULT_SIDES = 6
MIN_SIDES = 2


class DiceArguments(BaseModel):
    sides: Optional[int] = DEFAULT_SIDES


def roll(sides: int, rng: random.Random) -> Tuple[int, int]:
    """Return ``(value, sides)`` after clamping ``sides``."""
    sides = max(sides, MIN_SIDES)
    return rng.randint(1, sides), sides


class RollDiceTool(ToolHandler):
    """Roll a die with a configurable number of sides."""

    arguments_model = DiceArguments

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.SystemRandom()

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="roll_dice",
            description="Roll a die with the given number of sides (minimum 2) and return the result.",
            parameters=[
                ToolParameter(
                    name="sides",
                    type=ToolParameterType.INTEGER,
                    description="Number of sides on the die; values below 2 are treated as 2",
                    required=False,
                    default=DEFAULT_SIDES,
                ),
            ],
        )

    async def execute(self, arguments: DiceArguments) -> CallToolResult:
        requested = DEFAULT_SIDES if arguments.sides is None else arguments.sides
        value, sides = roll(requested, self.rng)
        return CallToolResult.text(f"Rolled a {value} on a {sides}-sided die")
