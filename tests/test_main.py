"""
Tests for the entry point helpers.
"""

import pytest

from main import parse_args, resolve_transport


@pytest.mark.parametrize("transport", ["stdio", "http"])
def test_known_transports(transport):
    assert resolve_transport(transport) == transport


@pytest.mark.parametrize("transport", ["", "websocket", "HTTP2"])
def test_unknown_transport_falls_back_to_stdio(transport):
    assert resolve_transport(transport) == "stdio"


def test_parse_args_overrides():
    args = parse_args(["--transport", "http", "--port", "9000"])

    assert args.transport == "http"
    assert args.port == 9000
    assert args.host is None
