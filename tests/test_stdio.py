import io
import json

import pytest

from vechain_mcp.__main__ import serve_stdio
from vechain_mcp.catalog import build_dispatcher
from vechain_mcp.config import VeChainConfig


@pytest.mark.asyncio
async def test_serve_stdio_answers_each_line():
    lines = [
        {"jsonrpc": "2.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "convert_from_base_units", "arguments": {"amount": 1000}}},
    ]
    reader = io.StringIO("\n".join(json.dumps(line) for line in lines) + "\n\n{broken\n")
    writer = io.StringIO()

    await serve_stdio(build_dispatcher(VeChainConfig.for_network("TESTNET")), reader=reader, writer=writer)

    replies = [json.loads(line) for line in writer.getvalue().splitlines()]
    assert len(replies) == 3
    assert replies[0] == {"jsonrpc": "2.0", "id": 1, "result": {}}
    payload = json.loads(replies[1]["result"]["content"][0]["text"])
    assert payload == {"baseUnits": "1000", "decimals": 18, "amount": "0.000000000000001"}
    assert replies[2]["error"]["code"] == -32700
