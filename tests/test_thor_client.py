import httpx
import pytest

from conftest import MockAsyncClient, MockResponse
from vechain_mcp.config import TESTNET_RPC_URL, TESTNET_THOREST_URL, VeChainConfig
from vechain_mcp.thor_api import (
    NodeUnreachableError,
    RequestTimeoutError,
    RpcClient,
    RpcError,
    ThorApiError,
    ThorestClient,
)

CONFIG = VeChainConfig.for_network("TESTNET")


@pytest.mark.asyncio
async def test_fetch_account_builds_url_and_params():
    mock = MockAsyncClient([MockResponse(200, {"balance": "0x0", "energy": "0x0", "hasCode": False})])
    client = ThorestClient(CONFIG, async_client=mock)
    data = await client.fetch_account("0xabc", revision="finalized")
    assert data["hasCode"] is False
    assert mock.calls[0]["url"] == f"{TESTNET_THOREST_URL}/accounts/0xabc"
    assert mock.calls[0]["params"] == {"revision": "finalized"}


@pytest.mark.asyncio
async def test_fetch_transaction_only_sends_given_flags():
    mock = MockAsyncClient([MockResponse(200, None)])
    client = ThorestClient(CONFIG, async_client=mock)
    assert await client.fetch_transaction("0x" + "a" * 64, pending=True) is None
    assert mock.calls[0]["params"] == {"pending": True}


@pytest.mark.asyncio
async def test_fetch_block_and_fee_paths():
    mock = MockAsyncClient([MockResponse(200, {"number": 1}), MockResponse(200, {"maxPriorityFeePerGas": "0x1"})])
    client = ThorestClient(CONFIG, async_client=mock)
    await client.fetch_block(12, expanded=True)
    await client.fetch_priority_fee()
    assert mock.calls[0]["url"].endswith("/blocks/12")
    assert mock.calls[0]["params"] == {"expanded": True}
    assert mock.calls[1]["url"].endswith("/fees/priority")


@pytest.mark.asyncio
async def test_http_error_carries_status_body_and_url():
    mock = MockAsyncClient([MockResponse(400, None, text="revision: invalid", reason_phrase="Bad Request")])
    client = ThorestClient(CONFIG, async_client=mock)
    with pytest.raises(ThorApiError) as excinfo:
        await client.fetch_block("nope")
    error = excinfo.value
    assert str(error) == "VeChain node responded 400 Bad Request: revision: invalid"
    assert error.status_code == 400
    assert error.url == f"{TESTNET_THOREST_URL}/blocks/nope"


@pytest.mark.asyncio
async def test_timeout_maps_to_request_timeout_error():
    mock = MockAsyncClient([httpx.ReadTimeout("slow")])
    client = ThorestClient(CONFIG, async_client=mock)
    with pytest.raises(RequestTimeoutError) as excinfo:
        await client.fetch_account("0xabc", revision="best")
    assert isinstance(excinfo.value, TimeoutError)
    assert excinfo.value.url == f"{TESTNET_THOREST_URL}/accounts/0xabc?revision=best"


@pytest.mark.asyncio
async def test_connection_error_maps_to_unreachable():
    mock = MockAsyncClient([httpx.ConnectError("refused")])
    client = ThorestClient(CONFIG, async_client=mock)
    with pytest.raises(NodeUnreachableError):
        await client.fetch_priority_fee()


@pytest.mark.asyncio
async def test_invalid_json_is_an_api_error():
    mock = MockAsyncClient([MockResponse(200, ValueError("not json"))])
    client = ThorestClient(CONFIG, async_client=mock)
    with pytest.raises(ThorApiError):
        await client.fetch_priority_fee()


@pytest.mark.asyncio
async def test_rpc_quantities_are_decoded():
    mock = MockAsyncClient(
        [
            MockResponse(200, {"jsonrpc": "2.0", "id": 1, "result": "0x186a9"}),
            MockResponse(200, {"jsonrpc": "2.0", "id": 2, "result": "0x10"}),
        ]
    )
    client = RpcClient(CONFIG, async_client=mock)
    assert await client.chain_id() == 100009
    assert await client.get_balance("0xabc") == 16
    assert mock.calls[0]["url"] == TESTNET_RPC_URL
    assert mock.calls[0]["json"]["method"] == "eth_chainId"
    assert mock.calls[1]["json"]["params"] == ["0xabc", "latest"]


@pytest.mark.asyncio
async def test_rpc_error_object_raises():
    mock = MockAsyncClient([MockResponse(200, {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "bad"}})])
    client = RpcClient(CONFIG, async_client=mock)
    with pytest.raises(RpcError) as excinfo:
        await client.block_number()
    assert excinfo.value.code == -32000


@pytest.mark.asyncio
async def test_rpc_unexpected_result_raises():
    mock = MockAsyncClient([MockResponse(200, {"jsonrpc": "2.0", "id": 1, "result": None})])
    client = RpcClient(CONFIG, async_client=mock)
    with pytest.raises(ThorApiError):
        await client.block_number()


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_alone():
    mock = MockAsyncClient([])
    client = ThorestClient(CONFIG, async_client=mock)
    await client.aclose()
    assert client._client is mock
