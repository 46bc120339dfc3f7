"""FastAPI application exposing the VeChain tool catalog over HTTP."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from vechain_mcp import catalog
from vechain_mcp.config import MCP_SERVER_NAME, MCP_SERVER_VERSION, VeChainConfig, default_config
from vechain_mcp.metrics import default_metrics
from vechain_mcp.rpc import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    SERVER_ERROR,
    handle_message,
    jsonrpc_error_payload,
)
from vechain_mcp.thor_api import default_rpc_client, default_thorest_client

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


def configure_logging(config: VeChainConfig = default_config) -> None:
    """Install the root handler; logs always go to stderr so stdio mode stays clean."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.log_format.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler])
    else:
        logging.basicConfig(level=level)


configure_logging()

HEALTH_STATUS = {"status": "ok"}


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Startup
    yield
    # Shutdown
    await default_thorest_client.aclose()
    await default_rpc_client.aclose()


app = FastAPI(
    title="VeChain MCP Server",
    description="VeChain query, wallet and documentation tools for LLM agents.",
    version=MCP_SERVER_VERSION,
    lifespan=lifespan,
)
app.state.dispatcher = catalog.default_dispatcher


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.time()
    default_metrics.incr_request()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    default_metrics.record_duration(request_id, duration_ms)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content={**HEALTH_STATUS, "name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION})


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.post("/tools/{tool_name}")
async def call_tool_route(tool_name: str, request: Request) -> JSONResponse:
    """Call one tool with the request body as its argument object."""
    raw = await request.body()
    arguments: Optional[Dict[str, Any]] = None
    if raw.strip():
        try:
            arguments = json.loads(raw)
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})
        if not isinstance(arguments, dict):
            return JSONResponse(status_code=400, content={"error": "Arguments must be a JSON object"})
    result = await request.app.state.dispatcher.handle(tool_name, arguments)
    return JSONResponse(content=result)


@app.post("/mcp")
async def mcp_gateway(request: Request) -> Response:
    """JSON-RPC gateway for MCP clients."""
    request_id = getattr(request.state, "request_id", None)
    start_time = time.time()

    try:
        body = await request.json()
    except Exception:
        return JSONResponse(status_code=400, content=jsonrpc_error_payload(None, PARSE_ERROR, "Parse error"))

    try:
        status_code, payload = await handle_message(body, request.app.state.dispatcher, request_id=request_id)
    except Exception:
        logger.exception("Unhandled error in MCP gateway", extra={"request_id": request_id})
        rpc_id = body.get("id") if isinstance(body, dict) else None
        return JSONResponse(
            status_code=500,
            content=jsonrpc_error_payload(rpc_id, INTERNAL_ERROR, "Internal server error"),
        )

    logger.debug(
        "mcp method=%s status=%s duration_ms=%.2f",
        body.get("method") if isinstance(body, dict) else None,
        status_code,
        (time.time() - start_time) * 1000,
        extra={"request_id": request_id},
    )
    if payload is None:
        return Response(status_code=status_code)
    return JSONResponse(status_code=status_code, content=payload)


@app.get("/mcp")
@app.delete("/mcp")
async def mcp_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content=jsonrpc_error_payload(None, SERVER_ERROR, "Method not allowed."),
    )


# Run with: uvicorn vechain_mcp.server:app --reload
