"""
Tests for the JSON-RPC envelope layer.

Covers payload parsing, reply serialization and content degradation.
"""

import pytest

from inferenco_mcp.jsonrpc import (
    UNSUPPORTED_CONTENT_TEXT,
    CallToolResult,
    JSONRPCHandler,
    JSONRPCRequest,
    MCPImageContent,
    MCPResourceLinkContent,
    MCPTextContent,
    MessageParseError,
    content_to_wire,
)


class TestParsePayload:
    """Test raw payload parsing."""

    def test_parse_request(self):
        request = JSONRPCHandler.parse_payload(
            b'{"jsonrpc":"2.0","id":7,"method":"tools/list","params":{}}'
        )

        assert isinstance(request, JSONRPCRequest)
        assert request.id == 7
        assert request.method == "tools/list"
        assert not request.is_notification

    def test_parse_notification(self):
        request = JSONRPCHandler.parse_payload('{"jsonrpc":"2.0","method":"notifications/initialized"}')

        assert request.is_notification

    def test_null_id_is_notification(self):
        request = JSONRPCHandler.parse_payload('{"jsonrpc":"2.0","id":null,"method":"ping"}')

        assert request.is_notification

    def test_wrong_version_still_parses(self):
        """Version checking belongs to the dispatcher, not the parser."""
        request = JSONRPCHandler.parse_payload('{"jsonrpc":1.0,"id":1,"method":"ping"}')

        assert request.jsonrpc == 1.0

    @pytest.mark.parametrize(
        "payload",
        [
            b"\xff\xfe\xfd",
            b"{not json",
            b"[]",
            b'[{"jsonrpc":"2.0","id":1,"method":"ping"}]',
            b'"just a string"',
            b'{"jsonrpc":"2.0","id":1}',
            b'{"jsonrpc":"2.0","id":1,"method":42}',
            b'{"jsonrpc":"2.0","id":NaN,"method":"ping"}',
            b'{"jsonrpc":"2.0","id":1,"method":"ping","params":{"x":Infinity}}',
            b'{"jsonrpc":"2.0","id":-Infinity,"method":"ping"}',
            b'{"jsonrpc":"2.0","id":1e400,"method":"ping"}',
        ],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(MessageParseError):
            JSONRPCHandler.parse_payload(payload)


class TestReplies:
    """Test reply construction and wire form."""

    def test_success_reply(self):
        reply = JSONRPCHandler.create_response(id="abc", result={"ok": True})

        assert JSONRPCHandler.dump(reply) == {"jsonrpc": "2.0", "id": "abc", "result": {"ok": True}}

    def test_error_reply_omits_empty_data(self):
        reply = JSONRPCHandler.create_error_response(id=None, code=-32600, message="Invalid Request")

        assert JSONRPCHandler.dump(reply) == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32600, "message": "Invalid Request"},
        }

    def test_acknowledgement(self):
        reply = JSONRPCHandler.create_acknowledgement()

        assert JSONRPCHandler.dump(reply) == {"jsonrpc": "2.0", "id": None, "result": {}}


class TestContent:
    """Test content variants and their wire form."""

    def test_text_passes_through(self):
        assert content_to_wire(MCPTextContent(text="hi")) == {"type": "text", "text": "hi"}

    def test_other_kinds_degrade(self):
        image = MCPImageContent(data="aGk=", mimeType="image/png")
        link = MCPResourceLinkContent(uri="https://example.org")

        assert content_to_wire(image) == {"type": "text", "text": UNSUPPORTED_CONTENT_TEXT}
        assert content_to_wire(link) == {"type": "text", "text": UNSUPPORTED_CONTENT_TEXT}

    def test_call_tool_result_discriminates_on_type(self):
        result = CallToolResult.model_validate(
            {
                "content": [
                    {"type": "text", "text": "a"},
                    {"type": "audio", "data": "AAA=", "mimeType": "audio/wav"},
                ]
            }
        )

        assert [type(block).__name__ for block in result.content] == [
            "MCPTextContent",
            "MCPAudioContent",
        ]
