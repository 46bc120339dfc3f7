import asyncio
import json

import pytest

from vechain_mcp.bridge import Dispatcher, ToolAggregator, ToolDescriptor
from vechain_mcp.bridge.dispatcher import error_envelope, text_envelope
from vechain_mcp.metrics import MetricsRecorder
from vechain_mcp.thor_api import NodeUnreachableError, RequestTimeoutError


class FunctionProvider:
    """Provider whose single dispatch function is supplied by the test."""

    def __init__(self, name, tools, dispatch):
        self.name = name
        self._tools = [ToolDescriptor(name=tool, title=tool, description="", schema=schema) for tool, schema in tools]
        self._dispatch = dispatch

    def list_tools(self):
        return list(self._tools)

    async def invoke(self, name, args):
        return await self._dispatch(name, args)


def _payload(envelope):
    assert envelope["content"][0]["type"] == "text"
    return json.loads(envelope["content"][0]["text"])


def _dispatcher(dispatch, tools=None, metrics=None):
    tools = tools or [("echo", {"type": "object", "properties": {"n": {"type": "integer"}}, "required": ["n"]})]
    provider = FunctionProvider("test", tools, dispatch)
    return Dispatcher(ToolAggregator([provider]), metrics=metrics or MetricsRecorder())


def test_envelopes():
    assert text_envelope({"a": 1}) == {"content": [{"type": "text", "text": json.dumps({"a": 1}, indent=2)}]}
    assert text_envelope("plain") == {"content": [{"type": "text", "text": "plain"}]}
    wrapped = error_envelope("Boom", "because", url="http://x")
    assert wrapped["isError"] is True
    assert _payload(wrapped) == {"error": "Boom", "reason": "because", "url": "http://x"}


@pytest.mark.asyncio
async def test_success_passes_validated_args():
    seen = {}

    async def dispatch(name, args):
        seen.update(args)
        return {"ok": True, "n": args["n"]}

    metrics = MetricsRecorder()
    envelope = await _dispatcher(dispatch, metrics=metrics).handle("echo", {"n": 3, "extra": "kept"})
    assert "isError" not in envelope
    assert _payload(envelope) == {"ok": True, "n": 3}
    assert seen == {"n": 3, "extra": "kept"}
    assert metrics.snapshot()["tool_success"] == {"echo": 1}


@pytest.mark.asyncio
async def test_unknown_tool_is_reported_in_band():
    async def dispatch(name, args):
        raise AssertionError("must not be called")

    metrics = MetricsRecorder()
    envelope = await _dispatcher(dispatch, metrics=metrics).handle("doesNotExist", {})
    payload = _payload(envelope)
    assert envelope["isError"] is True
    assert payload["error"] == "Unknown tool"
    assert "doesNotExist" in payload["reason"]
    assert metrics.snapshot()["unknown_tools"] == 1


@pytest.mark.asyncio
async def test_validation_failure_skips_handler():
    called = []

    async def dispatch(name, args):
        called.append(name)
        return {}

    metrics = MetricsRecorder()
    envelope = await _dispatcher(dispatch, metrics=metrics).handle("echo", {"n": "three"})
    payload = _payload(envelope)
    assert called == []
    assert payload["error"] == "Invalid arguments"
    assert payload["reason"] == 'Input validation failed for tool "echo": n: expected integer, got string'
    assert metrics.snapshot()["validation_failures"] == {"echo": 1}


@pytest.mark.asyncio
async def test_missing_arguments_default_to_empty_object():
    async def dispatch(name, args):
        return {"args": args}

    envelope = await _dispatcher(dispatch, tools=[("ping", None)]).handle("ping")
    assert _payload(envelope) == {"args": {}}


@pytest.mark.asyncio
async def test_handler_timeout_becomes_error_envelope():
    async def dispatch(name, args):
        raise RequestTimeoutError("Request timed out", url="https://node/blocks/best")

    envelope = await _dispatcher(dispatch).handle("echo", {"n": 1})
    payload = _payload(envelope)
    assert envelope["isError"] is True
    assert payload["error"] == "Request timed out"
    assert payload["url"] == "https://node/blocks/best"


@pytest.mark.asyncio
async def test_asyncio_timeout_becomes_error_envelope():
    async def dispatch(name, args):
        await asyncio.wait_for(asyncio.sleep(1), timeout=0.01)

    payload = _payload(await _dispatcher(dispatch).handle("echo", {"n": 1}))
    assert payload["error"] == "Request timed out"


@pytest.mark.asyncio
async def test_handler_exception_is_caught_with_context():
    async def dispatch(name, args):
        raise NodeUnreachableError("Node unreachable: connection refused", url="https://node/accounts/0x1")

    metrics = MetricsRecorder()
    envelope = await _dispatcher(dispatch, metrics=metrics).handle("echo", {"n": 1})
    payload = _payload(envelope)
    assert payload == {
        "error": "Tool execution failed",
        "reason": "Node unreachable: connection refused",
        "tool": "echo",
        "url": "https://node/accounts/0x1",
    }
    assert metrics.snapshot()["tool_error"] == {"echo": 1}


@pytest.mark.asyncio
async def test_handler_error_payload_is_flagged():
    async def dispatch(name, args):
        return {"error": "Failed to fetch account", "reason": "404"}

    envelope = await _dispatcher(dispatch).handle("echo", {"n": 1})
    assert envelope["isError"] is True
    assert _payload(envelope)["reason"] == "404"


@pytest.mark.asyncio
async def test_one_failing_call_does_not_affect_others():
    async def dispatch(name, args):
        if args["n"] == 0:
            raise RuntimeError("boom")
        await asyncio.sleep(0)
        return {"n": args["n"]}

    dispatcher = _dispatcher(dispatch)
    results = await asyncio.gather(*(dispatcher.handle("echo", {"n": n}) for n in range(4)))
    assert results[0]["isError"] is True
    assert [_payload(result)["n"] for result in results[1:]] == [1, 2, 3]
