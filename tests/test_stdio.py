"""
Tests for the stdio transport.

Uses in-memory text streams in place of stdin/stdout.
"""

import io
import json

import httpx
import pytest

from common.config import Config
from inferenco_mcp.jsonrpc import INVALID_REQUEST, PARSE_ERROR
from inferenco_mcp.mcp_server import MCPServer
from inferenco_mcp.session import SessionState
from inferenco_mcp.transports.stdio import StdioTransport


async def run_lines(*lines: str) -> list:
    server = MCPServer(Config(), session=SessionState(http_client=httpx.AsyncClient()))
    reader = io.StringIO("".join(line + "\n" for line in lines))
    writer = io.StringIO()

    await StdioTransport(server, reader=reader, writer=writer).run()

    return [json.loads(line) for line in writer.getvalue().splitlines()]


@pytest.mark.asyncio
async def test_replies_in_request_order():
    replies = await run_lines(
        json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}),
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}),
        json.dumps(
            {
                "jsonrpc": "2.0",
                "id": 3,
                "method": "tools/call",
                "params": {"name": "increment", "arguments": {}},
            }
        ),
        json.dumps(
            {
                "jsonrpc": "2.0",
                "id": 4,
                "method": "tools/call",
                "params": {"name": "increment", "arguments": {}},
            }
        ),
    )

    # The notification produces no line
    assert [reply["id"] for reply in replies] == [1, 2, 3, 4]
    assert replies[0]["result"]["capabilities"] == {"tools": {}}
    assert replies[2]["result"]["content"] == [{"type": "text", "text": "1"}]
    assert replies[3]["result"]["content"] == [{"type": "text", "text": "2"}]


@pytest.mark.asyncio
async def test_blank_lines_skipped_and_eof_stops():
    replies = await run_lines("", "   ", json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}))

    assert replies == [{"jsonrpc": "2.0", "id": 1, "result": {}}]


@pytest.mark.asyncio
async def test_parse_error_reply():
    replies = await run_lines("this is not json")

    assert replies == [
        {"jsonrpc": "2.0", "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error"}}
    ]


@pytest.mark.asyncio
async def test_invalid_version_reply():
    replies = await run_lines(json.dumps({"jsonrpc": "1.0", "id": 5, "method": "ping"}))

    assert replies[0]["error"]["code"] == INVALID_REQUEST
    assert replies[0]["id"] == 5


@pytest.mark.asyncio
async def test_non_ascii_round_trip():
    replies = await run_lines(
        json.dumps(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "reverse_text", "arguments": {"text": "héllo 🌍"}},
            }
        )
    )

    assert replies[0]["result"]["content"][0]["text"] == "🌍 olléh"


@pytest.mark.asyncio
async def test_non_finite_numbers_are_parse_errors():
    replies = await run_lines('{"jsonrpc":"2.0","id":NaN,"method":"ping"}')

    assert replies == [
        {"jsonrpc": "2.0", "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error"}}
    ]
