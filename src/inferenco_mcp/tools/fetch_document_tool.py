"""
Fetch and Summarize Document Tool for MCP

Standard MCP Tool: fetch_and_summarize_document
- Fetches a page from the fixed documentation origin
- Refuses paths carrying their own URL scheme
- Follows redirects only within that origin
- Extracts visible text and truncates it to a character budget
"""

import httpx
from pydantic import BaseModel

from common.config import DocsConfig
from common.logging import get_logger
from ..jsonrpc import CallToolResult
from ..session import SessionState
from ..tool_registry import (
    Tool,
    ToolArgumentError,
    ToolExecutionError,
    ToolHandler,
    ToolParameter,
    ToolParameterType,
)
from .html_text import extract_visible_text, summarize

logger = get_logger(__name__)

MAX_REDIRECTS = 5


class FetchDocumentArguments(BaseModel):
    path: str


def build_document_url(base_url: str, path: str) -> str:
    """
    Join ``path`` onto the fixed origin.

    Raises:
        ToolArgumentError: if ``path`` embeds an absolute URL.
    """
    if "://" in path:
        raise ToolArgumentError(
            f"Path must be relative to {base_url}; absolute URLs are not allowed: {path}"
        )
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def same_origin(url: httpx.URL, origin: httpx.URL) -> bool:
    return (url.scheme, url.host, url.port) == (origin.scheme, origin.host, origin.port)


class FetchDocumentTool(ToolHandler):
    """Fetch a documentation page and return its text, truncated."""

    arguments_model = FetchDocumentArguments

    def __init__(self, session: SessionState, config: DocsConfig):
        self.session = session
        self.base_url = config.base_url
        self.origin = httpx.URL(config.base_url)
        self.max_chars = config.max_chars

    def get_tool_definition(self) -> Tool:
        return Tool(
            name="fetch_and_summarize_document",
            description=(
                f"Fetch a documentation page from {self.base_url} and return a summary "
                f"of its text (up to {self.max_chars} characters)."
            ),
            parameters=[
                ToolParameter(
                    name="path",
                    type=ToolParameterType.STRING,
                    description=f"Page path relative to {self.base_url}, e.g. 'guides/getting-started'",
                    required=True,
                ),
            ],
        )

    async def execute(self, arguments: FetchDocumentArguments) -> CallToolResult:
        url = build_document_url(self.base_url, arguments.path)
        response = await self._fetch(url)
        url = str(response.url)

        if not response.is_success:
            raise ToolExecutionError(
                f"Failed to fetch {url}: HTTP {response.status_code} {response.reason_phrase}".rstrip()
            )

        text = extract_visible_text(response.text)
        summary = summarize(text, self.max_chars)

        logger.info(
            event="document_fetched",
            url=url,
            status_code=response.status_code,
            extracted_chars=len(text),
            truncated=len(summary) < len(text),
        )

        return CallToolResult.text(f"Source: {url}\n\n{summary}")

    async def _fetch(self, url: str) -> httpx.Response:
        """GET ``url``, following redirects only while they stay on the docs origin."""
        client = self.session.http_client
        request = client.build_request("GET", url)

        try:
            for _ in range(MAX_REDIRECTS + 1):
                response = await client.send(request)
                if not response.is_redirect:
                    return response

                request = response.next_request
                await response.aclose()
                if request is None or not same_origin(request.url, self.origin):
                    target = response.headers.get("location", "")
                    raise ToolExecutionError(
                        f"Failed to fetch {url}: redirected off {self.base_url} to {target}"
                    )
        except httpx.HTTPError as e:
            raise ToolExecutionError(f"Failed to fetch {url}: {str(e) or type(e).__name__}") from e

        raise ToolExecutionError(f"Failed to fetch {url}: too many redirects")
