"""
Tests for the MCP dispatcher.

Exercises the JSON-RPC state machine independently of any transport.
"""

import json
import random

import httpx
import pytest

from common.config import Config
from inferenco_mcp import PROTOCOL_VERSION, SERVER_NAME
from inferenco_mcp.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    CallToolResult,
    JSONRPCErrorResponse,
    JSONRPCHandler,
    JSONRPCResponse,
    MCPImageContent,
    MCPTextContent,
    MessageParseError,
)
from inferenco_mcp.mcp_server import MCPServer, build_registry
from inferenco_mcp.session import SessionState
from inferenco_mcp.tool_registry import Tool, ToolHandler, ToolRegistry
from inferenco_mcp.tools import EchoTool
from inferenco_mcp.tools.echo_tool import EchoArguments


class MixedContentTool(ToolHandler):
    """Returns a text block followed by an image block."""

    arguments_model = EchoArguments

    def get_tool_definition(self) -> Tool:
        return Tool(name="mixed", description="Mixed content")

    async def execute(self, arguments) -> CallToolResult:
        return CallToolResult(
            content=[
                MCPTextContent(text="caption"),
                MCPImageContent(data="aGk=", mimeType="image/png"),
            ]
        )


def make_server(handler=None) -> MCPServer:
    transport = httpx.MockTransport(handler or (lambda request: httpx.Response(200, text="<main>doc</main>")))
    config = Config()
    session = SessionState(http_client=httpx.AsyncClient(transport=transport))
    return MCPServer(config, session=session, registry=build_registry(config, session, random.Random(0)))


async def call(server: MCPServer, message: dict):
    return await server.handle_payload(json.dumps(message))


@pytest.fixture
def mcp_server():
    return make_server()


class TestEnvelope:
    """Envelope validation and classification."""

    @pytest.mark.asyncio
    async def test_wrong_version_is_invalid_request(self, mcp_server):
        reply = await call(mcp_server, {"jsonrpc": "1.0", "id": 1, "method": "tools/list"})

        assert isinstance(reply, JSONRPCErrorResponse)
        assert reply.error.code == INVALID_REQUEST
        assert reply.id == 1

    @pytest.mark.asyncio
    async def test_missing_version_without_id_echoes_null(self, mcp_server):
        reply = await call(mcp_server, {"method": "tools/list"})

        assert reply.error.code == INVALID_REQUEST
        assert reply.id is None

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self, mcp_server):
        with pytest.raises(MessageParseError):
            await mcp_server.handle_payload(b"{oops")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["notifications/initialized", "notifications/cancelled", "made/up"])
    async def test_notifications_get_no_reply(self, mcp_server, method):
        reply = await call(mcp_server, {"jsonrpc": "2.0", "method": method})

        assert reply is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, mcp_server):
        reply = await call(mcp_server, {"jsonrpc": "2.0", "id": "x", "method": "resources/list"})

        assert reply.error.code == METHOD_NOT_FOUND
        assert reply.id == "x"

    @pytest.mark.asyncio
    async def test_id_echoed_unchanged(self, mcp_server):
        request_id = {"opaque": [1, 2]}
        reply = await call(mcp_server, {"jsonrpc": "2.0", "id": request_id, "method": "ping"})

        assert reply.id == request_id
        assert reply.result == {}


class TestInitializeAndList:
    @pytest.mark.asyncio
    async def test_initialize(self, mcp_server):
        reply = await call(
            mcp_server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "initialize",
                "params": {"protocolVersion": "2025-06-18", "clientInfo": {"name": "t", "version": "1"}},
            },
        )

        assert isinstance(reply, JSONRPCResponse)
        assert reply.result["protocolVersion"] == PROTOCOL_VERSION
        assert reply.result["capabilities"] == {"tools": {}}
        assert reply.result["serverInfo"]["name"] == SERVER_NAME
        assert reply.result["instructions"]

    @pytest.mark.asyncio
    async def test_tools_list(self, mcp_server):
        reply = await call(mcp_server, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

        tools = reply.result["tools"]
        assert [tool["name"] for tool in tools] == [
            "echo",
            "reverse_text",
            "increment",
            "current_time",
            "roll_dice",
            "fetch_and_summarize_document",
        ]
        for tool in tools:
            assert set(tool) == {"name", "description", "inputSchema"}
            assert tool["inputSchema"]["type"] == "object"


class TestToolsCall:
    @pytest.mark.asyncio
    async def test_echo(self, mcp_server):
        reply = await call(
            mcp_server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "echo", "arguments": {"message": "hi"}},
            },
        )

        assert JSONRPCHandler.dump(reply) == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {"content": [{"type": "text", "text": "hi"}], "isError": False},
        }

    @pytest.mark.asyncio
    async def test_arguments_default_to_empty(self, mcp_server):
        reply = await call(
            mcp_server,
            {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "increment"}},
        )

        assert reply.result["content"] == [{"type": "text", "text": "1"}]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, mcp_server):
        reply = await call(
            mcp_server,
            {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "nonexistent"}},
        )

        assert reply.error.code == INVALID_PARAMS

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [None, {}, {"name": 5}, {"name": "echo", "arguments": [1, 2]}, "echo"],
    )
    async def test_malformed_params(self, mcp_server, params):
        message = {"jsonrpc": "2.0", "id": 9, "method": "tools/call"}
        if params is not None:
            message["params"] = params

        reply = await call(mcp_server, message)

        assert reply.error.code == INVALID_PARAMS
        assert reply.id == 9

    @pytest.mark.asyncio
    async def test_bad_tool_arguments(self, mcp_server):
        reply = await call(
            mcp_server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "echo", "arguments": {"message": 42}},
            },
        )

        assert reply.error.code == INVALID_PARAMS
        assert "echo" in reply.error.message

    @pytest.mark.asyncio
    async def test_docs_absolute_url_is_invalid_params(self, mcp_server):
        reply = await call(
            mcp_server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {
                    "name": "fetch_and_summarize_document",
                    "arguments": {"path": "https://evil.example/"},
                },
            },
        )

        assert reply.error.code == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_docs_remote_failure_is_internal_error(self):
        server = make_server(lambda request: httpx.Response(503))

        reply = await call(
            server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "fetch_and_summarize_document", "arguments": {"path": "guide"}},
            },
        )

        assert reply.error.code == INTERNAL_ERROR
        assert "503" in reply.error.message

    @pytest.mark.asyncio
    async def test_docs_success(self, mcp_server):
        reply = await call(
            mcp_server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "fetch_and_summarize_document", "arguments": {"path": "guide"}},
            },
        )

        text = reply.result["content"][0]["text"]
        assert text.startswith("Source: https://docs.inferenco.com/guide")
        assert text.endswith("doc")

    @pytest.mark.asyncio
    async def test_non_text_content_degrades(self):
        server = MCPServer(
            Config(),
            session=SessionState(http_client=httpx.AsyncClient()),
            registry=ToolRegistry([EchoTool(), MixedContentTool()]),
        )

        reply = await call(
            server,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "mixed", "arguments": {"message": "x"}},
            },
        )

        assert reply.result["content"] == [
            {"type": "text", "text": "caption"},
            {"type": "text", "text": "Content type not supported"},
        ]


def test_health_check(mcp_server):
    health = mcp_server.health_check()

    assert health["status"] == "ok"
    assert health["service"] == SERVER_NAME
    assert health["tools_count"] == 6
