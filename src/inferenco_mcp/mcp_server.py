"""
MCP Server Implementation

Transport-independent JSON-RPC engine:
- Envelope validation (jsonrpc == "2.0")
- Notification vs. request classification by presence of ``id``
- Method routing: initialize, ping, tools/list, tools/call
- Mapping of tool results and failures onto JSON-RPC replies

Transports hand raw payloads to handle_payload() / handle_message() and
serialize whatever comes back.
"""

import random
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from common.config import Config
from common.logging import get_logger
from . import PROTOCOL_VERSION, SERVER_NAME, __version__
from .jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    JSONRPCHandler,
    JSONRPCReply,
    JSONRPCRequest,
    MCPCapabilities,
    MCPImplementation,
    MCPInitializeResult,
    MCPMethods,
    MCPToolsCallParams,
    content_to_wire,
)
from .session import SessionState
from .tool_registry import ToolRegistry
from .tools import (
    CurrentTimeTool,
    EchoTool,
    FetchDocumentTool,
    IncrementTool,
    ReverseTextTool,
    RollDiceTool,
)

logger = get_logger(__name__)

INSTRUCTIONS = (
    "Inferenco MCP tool server. Provides echo, reverse_text, increment, current_time, "
    "roll_dice and fetch_and_summarize_document tools without any API key requirements "
    "on the stdio transport."
)


def build_registry(
    config: Config, session: SessionState, rng: Optional[random.Random] = None
) -> ToolRegistry:
    """Create the registry with every built-in tool, in advertised order."""
    return ToolRegistry(
        [
            EchoTool(),
            ReverseTextTool(),
            IncrementTool(session),
            CurrentTimeTool(),
            RollDiceTool(rng),
            FetchDocumentTool(session, config.docs),
        ]
    )


class MCPServer:
    """
    MCP JSON-RPC dispatcher.

    Owns the session state and the tool registry; shared by every transport
    in the process.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        session: Optional[SessionState] = None,
        registry: Optional[ToolRegistry] = None,
    ):
        self.config = config or Config()
        self.session = session or SessionState(timeout=self.config.docs.timeout)
        self.tool_registry = registry or build_registry(self.config, self.session)

        self.capabilities = MCPCapabilities(tools={})
        self.server_info = MCPImplementation(name=SERVER_NAME, version=__version__)

        logger.info(
            event="mcp_server_initialized",
            protocol_version=PROTOCOL_VERSION,
            tools_count=len(self.tool_registry),
        )

    def initialize_result(self) -> Dict[str, Any]:
        """Payload of a successful initialize response."""
        return MCPInitializeResult(
            protocolVersion=PROTOCOL_VERSION,
            capabilities=self.capabilities,
            serverInfo=self.server_info,
            instructions=INSTRUCTIONS,
        ).model_dump()

    async def handle_payload(self, payload: Union[bytes, str]) -> Optional[JSONRPCReply]:
        """
        Parse and dispatch one raw message.

        Raises:
            MessageParseError: if the payload is not a JSON-RPC envelope.

        Returns:
            The reply, or None for notifications.
        """
        request = JSONRPCHandler.parse_payload(payload)
        return await self.handle_message(request)

    async def handle_message(self, request: JSONRPCRequest) -> Optional[JSONRPCReply]:
        """Dispatch a parsed envelope. Returns None for notifications."""
        if request.jsonrpc != JSONRPC_VERSION:
            logger.warning(event="invalid_jsonrpc_version", version=request.jsonrpc)
            return JSONRPCHandler.create_error_response(
                request.id, INVALID_REQUEST, "Invalid Request"
            )

        if request.is_notification:
            await self._handle_notification(request)
            return None

        return await self._handle_request(request)

    async def _handle_request(self, request: JSONRPCRequest) -> JSONRPCReply:
        """Handle a JSON-RPC request."""
        try:
            logger.debug(event="jsonrpc_request", method=request.method, id=request.id)

            if request.method == MCPMethods.INITIALIZE:
                return self._handle_initialize(request)
            elif request.method == MCPMethods.PING:
                return JSONRPCHandler.create_response(request.id, {})
            elif request.method == MCPMethods.TOOLS_LIST:
                return self._handle_tools_list(request)
            elif request.method == MCPMethods.TOOLS_CALL:
                return await self._handle_tools_call(request)
            else:
                return JSONRPCHandler.create_error_response(
                    request.id, METHOD_NOT_FOUND, "Method not found"
                )

        except Exception as e:
            logger.error(event="request_handler_error", method=request.method, error=str(e))
            return JSONRPCHandler.create_error_response(
                request.id, INTERNAL_ERROR, f"Internal error: {str(e)}"
            )

    async def _handle_notification(self, notification: JSONRPCRequest) -> None:
        """Handle a JSON-RPC notification. Never produces an error."""
        if notification.method == MCPMethods.INITIALIZED:
            logger.info(event="client_ready", message="Client has completed initialization")
        elif notification.method == MCPMethods.CANCEL:
            params = notification.params if isinstance(notification.params, dict) else {}
            logger.info(event="request_cancelled", request_id=params.get("requestId"))
        else:
            logger.warning(event="unknown_notification", method=notification.method)

    def _handle_initialize(self, request: JSONRPCRequest) -> JSONRPCReply:
        """Handle initialize request."""
        params = request.params if isinstance(request.params, dict) else {}
        client_version = params.get("protocolVersion")
        if client_version and client_version != PROTOCOL_VERSION:
            logger.warning(
                event="protocol_version_mismatch",
                client_version=client_version,
                server_version=PROTOCOL_VERSION,
            )

        logger.info(event="client_initialized", client_info=params.get("clientInfo"))
        return JSONRPCHandler.create_response(request.id, self.initialize_result())

    def _handle_tools_list(self, request: JSONRPCRequest) -> JSONRPCReply:
        """Handle tools/list request."""
        tools = [tool.to_wire() for tool in self.tool_registry.list_tools()]
        logger.debug(event="tools_listed", total_tools=len(tools))
        return JSONRPCHandler.create_response(request.id, {"tools": tools})

    async def _handle_tools_call(self, request: JSONRPCRequest) -> JSONRPCReply:
        """Handle tools/call request."""
        if not isinstance(request.params, dict):
            return JSONRPCHandler.create_error_response(
                request.id, INVALID_PARAMS, "Invalid params"
            )

        try:
            params = MCPToolsCallParams.model_validate(request.params)
        except ValidationError:
            return JSONRPCHandler.create_error_response(
                request.id, INVALID_PARAMS, "Invalid params"
            )

        execution = await self.tool_registry.execute_tool(
            tool_name=params.name, arguments=params.arguments or {}
        )

        if not execution.success:
            logger.warning(
                event="tool_execution_failed",
                tool_name=params.name,
                error=execution.error,
                error_code=execution.error_code,
            )
            return JSONRPCHandler.create_error_response(
                request.id,
                execution.error_code or INTERNAL_ERROR,
                execution.error or "Tool execution failed",
            )

        content = [content_to_wire(block) for block in execution.result.content]
        return JSONRPCHandler.create_response(request.id, {"content": content, "isError": False})

    def health_check(self) -> Dict[str, Any]:
        """Static liveness information."""
        return {
            "status": "ok",
            "service": SERVER_NAME,
            "version": __version__,
            "protocol_version": PROTOCOL_VERSION,
            "tools_count": len(self.tool_registry),
        }

    async def aclose(self) -> None:
        """Release outbound resources held by the session."""
        await self.session.aclose()
