"""Request-handling entry point: validate, route, invoke, wrap."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional

from vechain_mcp.bridge.aggregator import ToolAggregator
from vechain_mcp.bridge.errors import ToolInputError
from vechain_mcp.bridge.registry import resolve
from vechain_mcp.metrics import MetricsRecorder, default_metrics

logger = logging.getLogger(__name__)


def text_envelope(payload: Any, *, is_error: bool = False) -> Dict[str, Any]:
    """Shape a tool result into the MCP content envelope."""
    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, indent=2, default=str)
    envelope: Dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        envelope["isError"] = True
    return envelope


def error_envelope(error: str, reason: str, **context: Any) -> Dict[str, Any]:
    return text_envelope({"error": error, "reason": reason, **context}, is_error=True)


def _is_error_payload(result: Any) -> bool:
    return isinstance(result, dict) and bool(result.get("error"))


class Dispatcher:
    """
    Turn ``(name, raw_args)`` into a response envelope.

    Nothing raised by validation or by a provider handler escapes ``handle``;
    failures are reported in-band as ``{"error", "reason", ...}`` payloads. No
    timeout is imposed here and nothing is retried: a handler's own timeout
    surfaces as a "Request timed out" payload.
    """

    def __init__(self, aggregator: ToolAggregator, *, metrics: MetricsRecorder = default_metrics) -> None:
        self.aggregator = aggregator
        self._metrics = metrics

    async def handle(self, name: str, raw_args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        provider = self.aggregator.provider_for(name)
        if provider is None:
            logger.warning("tool=%s outcome=unknown_tool", name, extra={"tool": name})
            self._metrics.record_unknown_tool()
            return error_envelope("Unknown tool", f'No tool named "{name}" is registered.', tool=name)

        try:
            args = resolve(self.aggregator.registry, name, raw_args)
        except ToolInputError as exc:
            logger.info("tool=%s outcome=invalid_arguments", name, extra={"tool": name, "error": str(exc)})
            self._metrics.record_validation_failure(name)
            return text_envelope(exc.to_payload(), is_error=True)

        try:
            result = await provider.invoke(name, args)
        except (asyncio.TimeoutError, TimeoutError) as exc:
            logger.warning("tool=%s outcome=timeout", name, extra={"tool": name})
            self._metrics.record_tool(name, success=False)
            return error_envelope("Request timed out", str(exc) or "The operation timed out.", **self._context(name, exc))
        except Exception as exc:
            logger.warning(
                "tool=%s outcome=error error=%s",
                name,
                type(exc).__name__,
                exc_info=True,
                extra={"tool": name, "error": type(exc).__name__},
            )
            self._metrics.record_tool(name, success=False)
            return error_envelope("Tool execution failed", str(exc) or type(exc).__name__, **self._context(name, exc))

        if _is_error_payload(result):
            logger.warning("tool=%s outcome=error error=%s", name, result.get("error"), extra={"tool": name, "error": result.get("error")})
            self._metrics.record_tool(name, success=False)
            return text_envelope(result, is_error=True)

        logger.info("tool=%s outcome=success", name, extra={"tool": name})
        self._metrics.record_tool(name, success=True)
        return text_envelope(result)

    @staticmethod
    def _context(name: str, exc: BaseException) -> Dict[str, Any]:
        context: Dict[str, Any] = {"tool": name}
        url = getattr(exc, "url", None)
        if url:
            context["url"] = url
        return context
