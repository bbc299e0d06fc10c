"""
Inferenco MCP server.

Model Context Protocol tool server speaking JSON-RPC 2.0 over stdio or HTTP/SSE.
"""

__version__ = "0.1.0"

SERVER_NAME = "inferenco-mcp"
PROTOCOL_VERSION = "2024-11-05"
