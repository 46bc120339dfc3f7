"""
Command-line entry point.

Serves the tool catalog over streamable HTTP (uvicorn) or, when
``USE_STREAMABLE_HTTP`` is false, as newline-delimited JSON-RPC on stdio.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional, TextIO

from dotenv import load_dotenv

logger = logging.getLogger("vechain_mcp")


async def serve_stdio(dispatcher, reader: TextIO = sys.stdin, writer: TextIO = sys.stdout) -> None:
    """Answer one JSON-RPC message per input line until EOF."""
    from vechain_mcp.rpc import PARSE_ERROR, handle_message, jsonrpc_error_payload

    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, reader.readline)
        if not line:
            break
        if not line.strip():
            continue
        try:
            body = json.loads(line)
        except ValueError:
            payload: Optional[dict] = jsonrpc_error_payload(None, PARSE_ERROR, "Parse error")
        else:
            _, payload = await handle_message(body, dispatcher)
        if payload is not None:
            writer.write(json.dumps(payload) + "\n")
            writer.flush()


def main() -> None:
    load_dotenv()

    from vechain_mcp.catalog import default_dispatcher
    from vechain_mcp.config import default_config

    if default_config.use_streamable_http:
        import uvicorn

        logger.info("Starting HTTP transport on %s:%s", default_config.host, default_config.port)
        uvicorn.run("vechain_mcp.server:app", host=default_config.host, port=default_config.port)
        return

    from vechain_mcp.server import configure_logging

    configure_logging(default_config)
    logger.info("Starting stdio transport")
    asyncio.run(serve_stdio(default_dispatcher))


if __name__ == "__main__":
    main()
