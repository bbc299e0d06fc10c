"""
JSON-RPC 2.0 Protocol Implementation for MCP

This module implements the JSON-RPC 2.0 message format used by the
Model Context Protocol, plus the MCP result and content shapes the
server produces.

Reference: https://www.jsonrpc.org/specification
MCP Spec: https://spec.modelcontextprotocol.io/specification/2024-11-05/basic/
"""

import json
import math
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

# JSON-RPC version constant
JSONRPC_VERSION = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# MCP-specific error codes
MCP_SERVER_ERROR = -32000


class MessageParseError(ValueError):
    """Raised when raw bytes cannot be turned into a JSON-RPC envelope."""


class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Optional[Any] = None


class JSONRPCRequest(BaseModel):
    """
    Inbound JSON-RPC 2.0 envelope.

    ``jsonrpc`` is left unconstrained so a wrong version can be answered
    with Invalid Request instead of failing the parse. A missing or null
    ``id`` marks the message as a notification.
    """

    jsonrpc: Optional[Any] = None
    id: Optional[Any] = None
    method: str
    params: Optional[Any] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response message (success)."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[Any] = None
    result: Any


class JSONRPCErrorResponse(BaseModel):
    """JSON-RPC 2.0 response message (error)."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[Any] = None
    error: JSONRPCError


JSONRPCReply = Union[JSONRPCResponse, JSONRPCErrorResponse]


class MCPMethods:
    """MCP method names understood by the server."""

    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    PING = "ping"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    CANCEL = "notifications/cancelled"


class MCPCapabilities(BaseModel):
    """MCP server capabilities. Only tools are ever advertised."""

    tools: Dict[str, Any] = Field(default_factory=dict)


class MCPImplementation(BaseModel):
    """MCP implementation info."""

    name: str
    version: str


class MCPInitializeResult(BaseModel):
    """Result for initialize response."""

    protocolVersion: str
    capabilities: MCPCapabilities
    serverInfo: MCPImplementation
    instructions: Optional[str] = None


class MCPToolsCallParams(BaseModel):
    """Parameters for tools/call request."""

    name: str
    arguments: Optional[Dict[str, Any]] = None


class MCPContentTypes:
    """Standard MCP content types."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    RESOURCE = "resource"
    RESOURCE_LINK = "resource_link"


UNSUPPORTED_CONTENT_TEXT = "Content type not supported"


class MCPTextContent(BaseModel):
    """Text content for tool results."""

    type: Literal["text"] = MCPContentTypes.TEXT
    text: str


class MCPImageContent(BaseModel):
    """Image content for tool results."""

    type: Literal["image"] = MCPContentTypes.IMAGE
    data: str  # base64 encoded
    mimeType: str


class MCPAudioContent(BaseModel):
    """Audio content for tool results."""

    type: Literal["audio"] = MCPContentTypes.AUDIO
    data: str  # base64 encoded
    mimeType: str


class MCPResourceContent(BaseModel):
    """Resource content for tool results."""

    type: Literal["resource"] = MCPContentTypes.RESOURCE
    resource: Dict[str, Any]


class MCPResourceLinkContent(BaseModel):
    """Resource link content for tool results."""

    type: Literal["resource_link"] = MCPContentTypes.RESOURCE_LINK
    uri: str
    name: Optional[str] = None
    description: Optional[str] = None
    mimeType: Optional[str] = None


MCPContent = Annotated[
    Union[
        MCPTextContent,
        MCPImageContent,
        MCPAudioContent,
        MCPResourceContent,
        MCPResourceLinkContent,
    ],
    Field(discriminator="type"),
]


class CallToolResult(BaseModel):
    """Ordered content blocks produced by a tool executor."""

    content: List[MCPContent] = Field(default_factory=list)

    @classmethod
    def text(cls, text: str) -> "CallToolResult":
        return cls(content=[MCPTextContent(text=text)])


def content_to_wire(block: MCPContent) -> Dict[str, Any]:
    """Serialize one content block; kinds other than text degrade to a placeholder."""
    if isinstance(block, MCPTextContent):
        return {"type": MCPContentTypes.TEXT, "text": block.text}
    return {"type": MCPContentTypes.TEXT, "text": UNSUPPORTED_CONTENT_TEXT}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {token}")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {token}")
    return value


class JSONRPCHandler:
    """Handler for JSON-RPC message processing."""

    @staticmethod
    def create_response(id: Any, result: Any) -> JSONRPCResponse:
        """Create a JSON-RPC success response."""
        return JSONRPCResponse(id=id, result=result)

    @staticmethod
    def create_error_response(
        id: Any, code: int, message: str, data: Optional[Any] = None
    ) -> JSONRPCErrorResponse:
        """Create a JSON-RPC error response."""
        error = JSONRPCError(code=code, message=message, data=data)
        return JSONRPCErrorResponse(id=id, error=error)

    @staticmethod
    def create_acknowledgement() -> JSONRPCResponse:
        """Empty success reply for notifications on transports that must answer."""
        return JSONRPCResponse(id=None, result={})

    @staticmethod
    def parse_payload(payload: Union[bytes, str]) -> JSONRPCRequest:
        """
        Parse raw transport bytes into a request envelope.

        Raises:
            MessageParseError: if the bytes are not UTF-8, not strict JSON (NaN, Infinity
                and out-of-range numbers are rejected), not a JSON object, or the
                object has no string ``method``.
        """
        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MessageParseError(f"Body is not valid UTF-8: {e}") from e

        try:
            data = json.loads(
                payload, parse_constant=_reject_constant, parse_float=_finite_float
            )
        except ValueError as e:
            raise MessageParseError(f"Parse error: {e}") from e

        if not isinstance(data, dict):
            raise MessageParseError("Expected a single JSON-RPC object")

        try:
            return JSONRPCRequest.model_validate(data)
        except ValidationError as e:
            raise MessageParseError(f"Invalid JSON-RPC envelope: {e.error_count()} error(s)") from e

    @staticmethod
    def dump(reply: JSONRPCReply) -> Dict[str, Any]:
        """Wire form of a reply; ``id`` is always present, ``data`` only when set."""
        if isinstance(reply, JSONRPCErrorResponse):
            return {
                "jsonrpc": reply.jsonrpc,
                "id": reply.id,
                "error": reply.error.model_dump(exclude_none=True),
            }
        return reply.model_dump()
