"""
Tool Registry for the MCP Server

Static catalogue of tool name -> descriptor -> handler binding.

Key Features:
- Registration happens once, at construction; the registry is read-only afterwards
- Stable listing order, used verbatim for tools/list
- Two-stage argument validation: the declared parameter schema is checked
  against the untyped JSON arguments, then the handler's pydantic model
  produces a typed argument record
- Execution results and failures reported through ToolExecution
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from common.logging import TimedLogger, get_logger
from .jsonrpc import INTERNAL_ERROR, INVALID_PARAMS, CallToolResult

logger = get_logger(__name__)


class ToolParameterType(str, Enum):
    """JSON Schema types for tool parameters."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ToolParameter(BaseModel):
    """Declared parameter of a tool."""

    name: str
    type: ToolParameterType
    description: str
    required: bool = False
    default: Optional[Any] = None
    enum: Optional[List[Any]] = None
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    pattern: Optional[str] = None


class Tool(BaseModel):
    """Tool descriptor: name, description and parameters."""

    name: str
    description: str
    parameters: List[ToolParameter] = []

    def input_schema(self) -> Dict[str, Any]:
        """Convert tool parameters to JSON Schema format."""
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for param in self.parameters:
            prop_schema: Dict[str, Any] = {
                "type": param.type.value,
                "description": param.description,
            }

            if param.enum:
                prop_schema["enum"] = param.enum
            if param.minimum is not None:
                prop_schema["minimum"] = param.minimum
            if param.maximum is not None:
                prop_schema["maximum"] = param.maximum
            if param.pattern:
                prop_schema["pattern"] = param.pattern
            if param.default is not None:
                prop_schema["default"] = param.default

            properties[param.name] = prop_schema

            if param.required:
                required.append(param.name)

        return {"type": "object", "properties": properties, "required": required}

    def to_wire(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


class ToolArgumentError(ValueError):
    """Raised by a handler when arguments are well-typed but unacceptable."""


class ToolExecutionError(RuntimeError):
    """Raised by a handler when the operation itself fails."""


@dataclass
class ToolExecution:
    """Result of tool execution."""

    success: bool
    result: Optional[CallToolResult] = None
    error: Optional[str] = None
    error_code: Optional[int] = None
    execution_time_ms: Optional[float] = None


class ToolHandler(ABC):
    """Abstract base class for tool handlers."""

    arguments_model: Type[BaseModel]

    @abstractmethod
    def get_tool_definition(self) -> Tool:
        """Get the tool definition for this handler."""

    @abstractmethod
    async def execute(self, arguments: Any) -> CallToolResult:
        """Execute the tool with a validated ``arguments_model`` instance."""


class ToolRegistry:
    """
    Immutable registry of tools and their handlers.

    Tools are registered once from the handlers passed at construction.
    Duplicate names are rejected.
    """

    def __init__(self, handlers: Iterable[ToolHandler]):
        tools: Dict[str, Tool] = {}
        bound: Dict[str, ToolHandler] = {}

        for handler in handlers:
            tool = handler.get_tool_definition()
            if tool.name in tools:
                raise ValueError(f"Duplicate tool name '{tool.name}'")
            tools[tool.name] = tool
            bound[tool.name] = handler

        self._tools: Mapping[str, Tool] = MappingProxyType(tools)
        self._handlers: Mapping[str, ToolHandler] = MappingProxyType(bound)

        logger.info(event="tool_registry_initialized", tools=list(self._tools.keys()))

    def __len__(self) -> int:
        return len(self._tools)

    def list_tools(self) -> List[Tool]:
        """List all registered tools in registration order."""
        return list(self._tools.values())

    def get_tool(self, tool_name: str) -> Optional[Tool]:
        return self._tools.get(tool_name)

    def resolve(self, tool_name: str) -> Optional[ToolHandler]:
        """Resolve a tool name to its handler, or None if unknown."""
        return self._handlers.get(tool_name)

    async def execute_tool(self, tool_name: str, arguments: Dict[str, Any]) -> ToolExecution:
        """
        Execute a tool with given arguments.

        Args:
            tool_name: Name of the tool to execute
            arguments: Untyped JSON arguments from the request

        Returns:
            ToolExecution result with success status, content or error code
        """
        handler = self.resolve(tool_name)
        if handler is None:
            return ToolExecution(
                success=False,
                error=f"Tool '{tool_name}' not found. Available tools: {list(self._tools.keys())}",
                error_code=INVALID_PARAMS,
            )

        tool = self._tools[tool_name]

        validation_error = self._validate_arguments(tool, arguments)
        if validation_error:
            return ToolExecution(
                success=False,
                error=f"Invalid arguments for tool '{tool_name}': {validation_error}",
                error_code=INVALID_PARAMS,
            )

        try:
            typed_arguments = handler.arguments_model.model_validate(arguments)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "arguments"
            return ToolExecution(
                success=False,
                error=f"Invalid arguments for tool '{tool_name}': {location}: {first['msg']}",
                error_code=INVALID_PARAMS,
            )

        timer = TimedLogger(logger, "tool_executed", tool_name=tool_name)
        try:
            with timer:
                result = await handler.execute(typed_arguments)
        except ToolArgumentError as e:
            return ToolExecution(
                success=False,
                error=str(e),
                error_code=INVALID_PARAMS,
                execution_time_ms=timer.elapsed_ms,
            )
        except Exception as e:
            logger.error(
                event="tool_execution_error",
                tool_name=tool_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ToolExecution(
                success=False,
                error=str(e) or type(e).__name__,
                error_code=INTERNAL_ERROR,
                execution_time_ms=timer.elapsed_ms,
            )

        return ToolExecution(success=True, result=result, execution_time_ms=timer.elapsed_ms)

    def _validate_arguments(self, tool: Tool, arguments: Dict[str, Any]) -> Optional[str]:
        """
        Validate tool arguments against the parameter schema.

        Unknown keys are ignored.

        Returns:
            None if valid, error message if invalid
        """
        for param in tool.parameters:
            if param.name not in arguments:
                if param.required:
                    return f"Required parameter '{param.name}' is missing"
                continue

            type_error = self._validate_parameter_type(param, arguments[param.name])
            if type_error:
                return f"Parameter '{param.name}': {type_error}"

        return None

    def _validate_parameter_type(self, param: ToolParameter, value: Any) -> Optional[str]:
        """
        Validate a single parameter value.

        Returns:
            None if valid, error message if invalid
        """
        if value is None:
            if param.required:
                return "is required but got null"
            return None

        if param.type == ToolParameterType.STRING:
            if not isinstance(value, str):
                return f"expected string, got {type(value).__name__}"
            if param.pattern and not re.match(param.pattern, value):
                return f"does not match pattern {param.pattern}"

        elif param.type == ToolParameterType.INTEGER:
            if isinstance(value, bool) or not isinstance(value, int):
                return f"expected integer, got {type(value).__name__}"
            if param.minimum is not None and value < param.minimum:
                return f"must be >= {param.minimum}"
            if param.maximum is not None and value > param.maximum:
                return f"must be <= {param.maximum}"

        elif param.type == ToolParameterType.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"expected number, got {type(value).__name__}"
            if param.minimum is not None and value < param.minimum:
                return f"must be >= {param.minimum}"
            if param.maximum is not None and value > param.maximum:
                return f"must be <= {param.maximum}"

        elif param.type == ToolParameterType.BOOLEAN:
            if not isinstance(value, bool):
                return f"expected boolean, got {type(value).__name__}"

        elif param.type == ToolParameterType.ARRAY:
            if not isinstance(value, list):
                return f"expected array, got {type(value).__name__}"

        elif param.type == ToolParameterType.OBJECT:
            if not isinstance(value, dict):
                return f"expected object, got {type(value).__name__}"

        if param.enum and value not in param.enum:
            return f"must be one of {param.enum}, got {value}"

        return None
