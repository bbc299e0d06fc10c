"""
Standard I/O Transport for MCP

Each line on stdin is one JSON-RPC message; each reply is written to stdout
as one line. Notifications get no reply. No authentication is applied: the
channel is the local process pipe.

Reference: https://modelcontextprotocol.io/specification/2024-11-05/basic/transports
"""

import asyncio
import json
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, TextIO

from common.logging import get_logger
from ..jsonrpc import PARSE_ERROR, JSONRPCHandler, MessageParseError
from ..mcp_server import MCPServer

logger = get_logger(__name__)


class StdioTransport:
    """
    Line-delimited JSON-RPC over a pair of text streams.

    Blocking reads and writes run on a single worker thread so the event
    loop stays free; messages are handled one at a time, so replies leave in
    the order requests arrived.
    """

    def __init__(
        self,
        mcp_server: MCPServer,
        reader: Optional[TextIO] = None,
        writer: Optional[TextIO] = None,
    ):
        self.mcp_server = mcp_server
        self.reader = reader or sys.stdin
        self.writer = writer or sys.stdout
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stdio")
        self.running = False

    async def run(self) -> None:
        """Serve until EOF or stop()."""
        self.running = True
        logger.info(event="stdio_transport_started", message="MCP stdio transport started")
        loop = asyncio.get_running_loop()

        try:
            while self.running:
                line = await loop.run_in_executor(self.executor, self.reader.readline)

                if not line:  # EOF
                    logger.info(event="stdio_eof", message="Received EOF, shutting down")
                    break

                line = line.strip()
                if not line:
                    continue

                await self._handle_message(line)
        finally:
            self.running = False
            self.executor.shutdown(wait=False)
            logger.info(event="stdio_transport_stopped")

    def stop(self) -> None:
        """Stop after the message currently being handled."""
        self.running = False

    async def _handle_message(self, message: str) -> None:
        """Handle one JSON-RPC line."""
        try:
            reply = await self.mcp_server.handle_payload(message)
        except MessageParseError as e:
            logger.warning(event="stdio_parse_error", error=str(e))
            error_response = JSONRPCHandler.create_error_response(None, PARSE_ERROR, "Parse error")
            await self._write(JSONRPCHandler.dump(error_response))
            return

        if reply is not None:
            await self._write(JSONRPCHandler.dump(reply))

    async def _write(self, data: Dict[str, Any]) -> None:
        """Write one JSON line to the output stream."""
        message = json.dumps(data, separators=(",", ":"))

        def write_line() -> None:
            self.writer.write(message + "\n")
            self.writer.flush()

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self.executor, write_line)


async def serve_stdio(mcp_server: MCPServer) -> None:
    """Run the stdio transport and release server resources afterwards."""
    transport = StdioTransport(mcp_server)
    try:
        await transport.run()
    finally:
        await mcp_server.aclose()
