"""
HTTP transport using FastAPI.

Endpoints:
- POST /rpc   one JSON-RPC message per request, one reply per response
- GET  /sse   event stream (initialize payload, then keepalives)
- POST /sse   same as POST /rpc, for clients holding an SSE stream open
- GET  /health, GET /   liveness probe, no auth

JSON-RPC failures are returned as 200 with an error object. Transport
failures use HTTP status codes: 401 for auth, 400 for a malformed body.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from common.config import Config
from common.logging import get_logger
from .. import __version__
from ..auth import AuthGuard
from ..jsonrpc import MCP_SERVER_ERROR, JSONRPCHandler, MessageParseError
from ..mcp_server import MCPServer
from .sse import sse_event_stream

logger = get_logger(__name__)


class HTTPGateway:
    """FastAPI application wrapping the MCP dispatcher."""

    def __init__(self, config: Config, mcp_server: Optional[MCPServer] = None):
        self.config = config
        self.mcp_server = mcp_server or MCPServer(config)
        self.auth_guard = AuthGuard(config.auth)

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            yield
            await self.mcp_server.aclose()

        self.app = FastAPI(title="Inferenco MCP Server", version=__version__, lifespan=lifespan)
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup FastAPI routes."""

        @self.app.post("/rpc")
        async def handle_rpc(request: Request) -> JSONResponse:
            """Main JSON-RPC endpoint."""
            return await self._dispatch(request)

        @self.app.post("/sse")
        async def handle_sse_message(request: Request) -> JSONResponse:
            """Client-to-server messages while an SSE stream is open."""
            return await self._dispatch(request)

        @self.app.get("/sse")
        async def handle_sse(request: Request, token: Optional[str] = None) -> StreamingResponse:
            """Open the event stream; auth failures are reported in-band."""
            stream = sse_event_stream(
                self.sse_opening_event(token),
                keepalive_interval=self.config.sse.keepalive_interval,
                heartbeat_interval=self.config.sse.heartbeat_interval,
                is_disconnected=request.is_disconnected,
            )
            return StreamingResponse(
                stream,
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
            )

        @self.app.get("/health")
        async def health_check() -> JSONResponse:
            """Health check endpoint."""
            return JSONResponse(self.mcp_server.health_check())

        @self.app.get("/")
        async def root() -> JSONResponse:
            return JSONResponse(self.mcp_server.health_check())

    def sse_opening_event(self, token: Optional[str]) -> Dict[str, Any]:
        """First SSE event: the initialize payload, or an error if the token is rejected."""
        auth = self.auth_guard.check_token(token)
        if auth.allowed:
            return {"jsonrpc": "2.0", "result": self.mcp_server.initialize_result()}
        return {
            "jsonrpc": "2.0",
            "error": {"code": MCP_SERVER_ERROR, "message": auth.message},
        }

    async def _dispatch(self, request: Request) -> JSONResponse:
        """Authenticate, parse and dispatch one JSON-RPC message."""
        auth = self.auth_guard.check_headers(request.headers)
        if not auth.allowed:
            raise HTTPException(status_code=401, detail=auth.message)

        body = await request.body()
        try:
            reply = await self.mcp_server.handle_payload(body)
        except MessageParseError as e:
            logger.warning(event="http_parse_error", path=request.url.path, error=str(e))
            raise HTTPException(status_code=400, detail="Malformed JSON-RPC request") from e

        if reply is None:
            reply = JSONRPCHandler.create_acknowledgement()

        return JSONResponse(content=JSONRPCHandler.dump(reply))


def create_http_app(config: Config, mcp_server: Optional[MCPServer] = None) -> FastAPI:
    """Create the FastAPI application."""
    return HTTPGateway(config, mcp_server).app
