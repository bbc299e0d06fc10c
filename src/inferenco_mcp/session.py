"""
Process-wide session state shared by tool executors.

Holds the in-memory counter and the reusable outbound HTTP client. The
state is passed explicitly to the handlers that need it and lives for the
lifetime of the process; nothing is persisted.
"""

import asyncio
from typing import Optional

import httpx

from common.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "inferenco-mcp (+https://inferenco.com)"


class SessionState:
    """Shared counter plus a long-lived httpx client."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0):
        self._counter = 0
        self._counter_lock = asyncio.Lock()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def counter(self) -> int:
        return self._counter

    async def increment(self) -> int:
        """Add one to the counter and return the new value."""
        async with self._counter_lock:
            self._counter += 1
            return self._counter

    async def aclose(self) -> None:
        """Close the outbound client if this session created it."""
        if self._owns_client and not self.http_client.is_closed:
            await self.http_client.aclose()
            logger.info(event="session_http_client_closed")
