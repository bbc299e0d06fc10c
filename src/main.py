"""
Main application entry point for the Inferenco MCP server.

Selects the transport from configuration:
- stdio (default): line-delimited JSON-RPC on stdin/stdout
- http: FastAPI app served by uvicorn (/rpc, /sse, /health)
"""

# Standard library imports
import argparse
import asyncio
import sys
from typing import Optional

import uvicorn

# Third-party imports
from dotenv import load_dotenv

# Local imports
from common.config import Config, load_config
from common.logging import get_logger, log_startup_message, setup_logging
from inferenco_mcp import PROTOCOL_VERSION
from inferenco_mcp.mcp_server import MCPServer
from inferenco_mcp.transports.http import create_http_app
from inferenco_mcp.transports.stdio import serve_stdio

TRANSPORTS = ("stdio", "http")

logger = get_logger(__name__)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Inferenco MCP Server")
    parser.add_argument("--transport", type=str, help="Override the transport (stdio|http)")
    parser.add_argument("--port", type=int, help="Override the HTTP port")
    parser.add_argument("--host", type=str, help="Override the HTTP host")
    return parser.parse_args(argv)


def resolve_transport(transport: str) -> str:
    """Return a supported transport name, falling back to stdio."""
    if transport in TRANSPORTS:
        return transport
    logger.warning(event="unknown_transport", transport=transport, fallback="stdio")
    return "stdio"


def run_http(config: Config, mcp_server: MCPServer) -> None:
    """Serve the HTTP transport with uvicorn."""
    app = create_http_app(config, mcp_server)
    host, port = config.server.host, config.server.port

    log_startup_message(
        "mcp_http_server_listening",
        rpc_endpoint=f"http://{host}:{port}/rpc",
        sse_endpoint=f"http://{host}:{port}/sse",
        health_endpoint=f"http://{host}:{port}/health",
        auth_enabled=config.auth.enabled,
        protocol_version=PROTOCOL_VERSION,
        tools=[tool.name for tool in mcp_server.tool_registry.list_tools()],
    )

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_config=None,  # Use our custom logging setup
        access_log=False,
    )


def run_stdio(mcp_server: MCPServer) -> None:
    """Serve the stdio transport until EOF."""
    log_startup_message(
        "mcp_stdio_server_running",
        protocol_version=PROTOCOL_VERSION,
        tools=[tool.name for tool in mcp_server.tool_registry.list_tools()],
    )
    asyncio.run(serve_stdio(mcp_server))


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    load_dotenv()

    try:
        args = parse_args(argv)
        config = load_config()

        if args.transport:
            config.server.transport = args.transport.strip().lower()
        if args.host:
            config.server.host = args.host
        if args.port:
            config.server.port = args.port

        setup_logging(config)

        transport = resolve_transport(config.server.transport)
        mcp_server = MCPServer(config)

        if transport == "http":
            run_http(config, mcp_server)
        else:
            run_stdio(mcp_server)

    except KeyboardInterrupt:
        logger.info(event="application_shutdown", reason="Keyboard interrupt")
    except Exception as e:
        logger.critical(event="application_crashed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
