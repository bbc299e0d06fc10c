"""
Server-Sent Events stream for MCP clients.

The stream opens with one JSON-RPC shaped event, then emits two kinds of
comment lines forever: a keepalive on the long interval and a heartbeat on
the short one. It ends when the client disconnects or the generator is
closed, so no timer outlives the connection.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from common.logging import get_logger

logger = get_logger(__name__)

KEEPALIVE_COMMENT = ": keepalive\n\n"
HEARTBEAT_COMMENT = ": keep-alive-text\n\n"


def format_event(payload: Dict[str, Any]) -> str:
    """Encode a JSON payload as a single SSE ``data`` event."""
    return f"data: {json.dumps(payload, separators=(',', ':'))}\n\n"


async def sse_event_stream(
    first_event: Dict[str, Any],
    keepalive_interval: float,
    heartbeat_interval: float,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """Yield the opening event, then keepalive and heartbeat comments."""
    loop = asyncio.get_running_loop()
    next_keepalive = loop.time() + keepalive_interval
    next_heartbeat = loop.time() + heartbeat_interval
    ticks = 0

    logger.info(event="sse_stream_opened")
    try:
        yield format_event(first_event)

        while True:
            delay = min(next_keepalive, next_heartbeat) - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)

            if is_disconnected is not None and await is_disconnected():
                break

            now = loop.time()
            if now >= next_heartbeat:
                next_heartbeat += heartbeat_interval
                ticks += 1
                yield HEARTBEAT_COMMENT
            if now >= next_keepalive:
                next_keepalive += keepalive_interval
                ticks += 1
                yield KEEPALIVE_COMMENT
    finally:
        logger.info(event="sse_stream_closed", ticks=ticks)
