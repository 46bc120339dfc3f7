"""Documentation search, proxied to the VeChain docs MCP server."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import Implementation
from pydantic import BaseModel, Field

from vechain_mcp.config import MCP_CLIENT_NAME, MCP_CLIENT_VERSION, VeChainConfig, default_config

logger = logging.getLogger(__name__)

DOCS_TOOL_NAME = "searchDocumentation"

DocsCaller = Callable[[str, str, float], Awaitable[Dict[str, Any]]]


class SearchDocumentationInput(BaseModel):
    query: str = Field(description="The search query string")


def docs_endpoint(config: VeChainConfig) -> str:
    return f"{config.docs_url.rstrip('/')}/~gitbook/mcp"


async def call_docs_tool(url: str, query: str, timeout: float) -> Dict[str, Any]:
    """Open a short-lived MCP session against the docs server and run one search."""
    client_info = Implementation(name=MCP_CLIENT_NAME, version=MCP_CLIENT_VERSION)
    async with streamablehttp_client(url, timeout=timeout) as (read_stream, write_stream, _):
        async with ClientSession(read_stream, write_stream, client_info=client_info) as session:
            await session.initialize()
            result = await session.call_tool(DOCS_TOOL_NAME, {"query": query})
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


async def search_documentation(
    query: str,
    *,
    config: VeChainConfig = default_config,
    call_docs: DocsCaller = call_docs_tool,
) -> Dict[str, Any]:
    """
    Search docs.vechain.org and return the remote tool result as-is.

    Args:
        query: Free-text search query.
        config: Supplies the docs URL and timeout.
        call_docs: Coroutine performing the remote call (override for testing).
    """
    url = docs_endpoint(config)
    try:
        return await asyncio.wait_for(call_docs(url, query, config.timeout), timeout=config.timeout)
    except (asyncio.TimeoutError, TimeoutError):
        logger.warning("Documentation search timed out")
        return {"error": "Request timed out", "reason": f"No reply within {config.timeout}s", "url": url, "query": query}
    except Exception as exc:
        logger.warning("Documentation search failed: %s", type(exc).__name__)
        return {"error": "Failed to search documentation", "reason": str(exc) or type(exc).__name__, "url": url, "query": query}
