import pytest

from conftest import TEST_SECRET_KEY
from vechain_mcp import wallet
from vechain_mcp.bridge import ToolAggregator, build_registry, resolve
from vechain_mcp.bridge.errors import ToolInputError
from vechain_mcp.config import VeChainConfig
from vechain_mcp.providers import SchemaToolProvider
from vechain_mcp.thor_api import RequestTimeoutError, RpcError
from vechain_mcp.tools.onchain import ONCHAIN_TOOLS, dispatch, format_units, parse_units

CONFIG = VeChainConfig.for_network("MAINNET", secret_key=TEST_SECRET_KEY)
AGENT_ADDRESS = wallet.address_of(wallet.load_private_key(TEST_SECRET_KEY))


class StubRpc:
    def __init__(self, error=None):
        self.error = error
        self.balances = []

    async def chain_id(self):
        if self.error:
            raise self.error
        return 100009

    async def block_number(self):
        if self.error:
            raise self.error
        return 42

    async def get_balance(self, address, block="latest"):
        self.balances.append(address)
        return 1_500_000_000_000_000_000


@pytest.fixture
def registry():
    return build_registry(ONCHAIN_TOOLS)


def test_unit_conversion_helpers():
    assert parse_units("1.5", 18) == 1_500_000_000_000_000_000
    assert parse_units(2, 6) == 2_000_000
    assert format_units(1_500_000_000_000_000_000, 18) == "1.5"
    assert format_units(0, 18) == "0"
    with pytest.raises(ValueError):
        parse_units("0.0000001", 6)


def test_schema_documents_are_enforced(registry):
    assert resolve(registry, "convert_to_base_units", {"amount": "1.25"}) == {"amount": "1.25"}
    assert resolve(registry, "convert_to_base_units", {"amount": 3, "decimals": 6}) == {"amount": 3, "decimals": 6}
    with pytest.raises(ToolInputError):
        resolve(registry, "convert_to_base_units", {"amount": "-1"})
    with pytest.raises(ToolInputError):
        resolve(registry, "convert_to_base_units", {"amount": "1", "decimals": 99})
    with pytest.raises(ToolInputError):
        resolve(registry, "convert_from_base_units", {})
    with pytest.raises(ToolInputError):
        resolve(registry, "get_balance", {"address": "0xabc"})


def test_catalog_echoes_json_schema():
    aggregator = ToolAggregator([SchemaToolProvider("onchain", ONCHAIN_TOOLS, dispatch)])
    tools = {tool["name"]: tool for tool in aggregator.list_tools()}
    assert tools["convert_to_base_units"]["inputSchema"]["required"] == ["amount"]


@pytest.mark.asyncio
async def test_get_chain_and_block_number():
    rpc = StubRpc()
    assert await dispatch("get_chain", {}, client=rpc, config=CONFIG) == {"type": "evm", "id": 100009, "network": "mainnet"}
    assert await dispatch("get_block_number", {}, client=rpc, config=CONFIG) == {"blockNumber": 42, "network": "mainnet"}


@pytest.mark.asyncio
async def test_get_balance_defaults_to_agent_address():
    rpc = StubRpc()
    result = await dispatch("get_balance", {}, client=rpc, config=CONFIG)
    assert rpc.balances == [AGENT_ADDRESS]
    assert result["formatted"] == "1.5"
    assert result["symbol"] == "VET"

    await dispatch("get_balance", {"address": "AB" * 20}, client=rpc, config=CONFIG)
    assert rpc.balances[-1] == "0x" + "ab" * 20


@pytest.mark.asyncio
async def test_get_address_requires_key():
    assert await dispatch("get_address", {}, config=CONFIG) == {"address": AGENT_ADDRESS}
    no_key = VeChainConfig.for_network("MAINNET", secret_key=None)
    result = await dispatch("get_address", {}, config=no_key)
    assert result["error"] == "Wallet not configured"


@pytest.mark.asyncio
async def test_conversions():
    result = await dispatch("convert_to_base_units", {"amount": "1.5"}, config=CONFIG)
    assert result == {"amount": "1.5", "decimals": 18, "baseUnits": "1500000000000000000"}
    result = await dispatch("convert_from_base_units", {"amount": "2500000", "decimals": 6}, config=CONFIG)
    assert result == {"baseUnits": "2500000", "decimals": 6, "amount": "2.5"}
    result = await dispatch("convert_to_base_units", {"amount": "0.0000001", "decimals": 6}, config=CONFIG)
    assert result["error"] == "Invalid amount"


@pytest.mark.asyncio
async def test_rpc_failures_become_error_payloads():
    timeout = StubRpc(RequestTimeoutError("Request timed out", url="https://rpc"))
    assert (await dispatch("get_chain", {}, client=timeout, config=CONFIG))["error"] == "Request timed out"
    failing = StubRpc(RpcError("bad", code=-32000, url="https://rpc"))
    result = await dispatch("get_block_number", {}, client=failing, config=CONFIG)
    assert result == {"error": "JSON-RPC call failed", "reason": "bad", "url": "https://rpc", "tool": "get_block_number"}


@pytest.mark.asyncio
async def test_unknown_name_is_reported():
    result = await dispatch("nope", {}, config=CONFIG)
    assert result["error"] == "Unknown tool"


@pytest.mark.asyncio
async def test_non_finite_amounts_are_invalid(registry):
    args = resolve(registry, "convert_to_base_units", {"amount": float("inf")})
    result = await dispatch("convert_to_base_units", args, config=CONFIG)
    assert result["error"] == "Invalid amount"
    with pytest.raises(ValueError):
        parse_units("NaN", 18)
