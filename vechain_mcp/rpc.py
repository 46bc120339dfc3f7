"""
JSON-RPC message handling shared by the HTTP and stdio transports.

Supported methods:
  - initialize
  - ping
  - list_tools / tools/list
  - call_tool / tools/call
  - notifications/* (acknowledged without a response body)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from vechain_mcp.bridge import Dispatcher
from vechain_mcp.config import MCP_SERVER_NAME, MCP_SERVER_VERSION

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2025-03-26"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000

RpcReply = Tuple[int, Optional[Dict[str, Any]]]


def jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def _error(rpc_id: Any, code: int, message: str, status_code: int = 200) -> RpcReply:
    return status_code, jsonrpc_error_payload(rpc_id, code, message)


async def handle_message(
    body: Any,
    dispatcher: Dispatcher,
    *,
    request_id: Optional[str] = None,
) -> RpcReply:
    """
    Handle one decoded JSON-RPC message.

    Returns an HTTP-style status code and the response payload, or ``None`` for
    notifications, which get no response body.
    """
    if not isinstance(body, dict):
        return _error(None, INVALID_REQUEST, "Invalid request", 400)

    method = body.get("method")
    rpc_id = body.get("id")
    raw_params = body.get("params")
    if raw_params is None:
        params: Dict[str, Any] = {}
    elif isinstance(raw_params, dict):
        params = raw_params
    else:
        return _error(rpc_id, INVALID_PARAMS, "Invalid params")

    if not method or not isinstance(method, str):
        return _error(rpc_id, INVALID_REQUEST, "Invalid request")

    if method.startswith("notifications/") or method == "initialized":
        logger.debug("mcp notification %s request_id=%s", method, request_id, extra={"request_id": request_id})
        return 204, None

    if method == "initialize":
        protocol_version = params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION
        if not isinstance(protocol_version, str):
            return _error(rpc_id, INVALID_PARAMS, "Invalid params")
        result = {
            "protocolVersion": protocol_version,
            "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
            "capabilities": {"tools": {"listChanged": False}},
        }
        return 200, jsonrpc_success_payload(rpc_id, result)

    if method == "ping":
        return 200, jsonrpc_success_payload(rpc_id, {})

    if method in ("list_tools", "tools/list"):
        return 200, jsonrpc_success_payload(rpc_id, {"tools": dispatcher.aggregator.list_tools()})

    if method in ("call_tool", "tools/call"):
        tool_name = params.get("name") or params.get("tool")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = params.get("params")
        if not isinstance(tool_name, str) or not tool_name.strip():
            return _error(rpc_id, INVALID_PARAMS, "Invalid params")
        if arguments is not None and not isinstance(arguments, dict):
            return _error(rpc_id, INVALID_PARAMS, "Invalid params")
        result = await dispatcher.handle(tool_name, arguments)
        return 200, jsonrpc_success_payload(rpc_id, result)

    return _error(rpc_id, METHOD_NOT_FOUND, "Method not found")
