"""Transport adapters for the MCP server (stdio and HTTP/SSE)."""
