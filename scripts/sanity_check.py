"""Minimal live sanity checks for the VeChain MCP tools (hits the configured network)."""

from __future__ import annotations

import asyncio
import json
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from vechain_mcp.catalog import call_tool, list_tools  # noqa: E402
from vechain_mcp.thor_api import default_rpc_client, default_thorest_client  # noqa: E402

# Zero address exists on every network; override via env.
SAMPLE_ADDRESS = os.getenv("VECHAIN_SAMPLE_ADDRESS", "0x0000000000000000000000000000000000000000")
# Opt-in to the docs search (talks to a remote MCP server).
RUN_DOCS_SEARCH = os.getenv("RUN_DOCS_SANITY", "false").lower() in {"1", "true", "yes"}


def _show(label: str, envelope: dict) -> None:
    text = envelope["content"][0]["text"]
    print(f"{label}{' (error)' if envelope.get('isError') else ''}:", text[:400])


async def main() -> None:
    print("Tools:", ", ".join(tool["name"] for tool in list_tools()))
    _show("Best block", await call_tool("get_block", {}))
    _show("Account", await call_tool("get_account", {"address": SAMPLE_ADDRESS}))
    _show("Priority fee", await call_tool("get_priority_fee"))
    _show("Chain", await call_tool("get_chain"))
    _show("Invalid address", await call_tool("get_account", {"address": "0xabc"}))
    if RUN_DOCS_SEARCH:
        _show("Docs", await call_tool("search_documentation", {"query": "thor solo"}))
    await default_thorest_client.aclose()
    await default_rpc_client.aclose()
    print(json.dumps({"done": True}))


if __name__ == "__main__":
    asyncio.run(main())
