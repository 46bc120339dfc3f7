"""
On-chain tools served through the node's Ethereum-compatible JSON-RPC endpoint.

These tools are described with plain JSON-Schema documents and executed by a
single dispatch function keyed by tool name.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Mapping

from vechain_mcp import wallet
from vechain_mcp.bridge.types import ToolDescriptor
from vechain_mcp.config import ADDRESS_PATTERN, VeChainConfig, default_config
from vechain_mcp.thor_api import RequestTimeoutError, RpcClient, ThorApiError, default_rpc_client
from vechain_mcp.tools.validators import normalize_address

logger = logging.getLogger(__name__)

NATIVE_SYMBOL = "VET"
NATIVE_DECIMALS = 18
MAX_DECIMALS = 36

_DECIMALS_SCHEMA = {
    "type": "integer",
    "minimum": 0,
    "maximum": MAX_DECIMALS,
    "default": NATIVE_DECIMALS,
    "description": "Number of decimals of the token. Default: 18",
}

ONCHAIN_TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="get_address",
        title="Get agent address",
        description="Get the address of the agent wallet.",
        schema={"type": "object", "properties": {}},
    ),
    ToolDescriptor(
        name="get_chain",
        title="Get chain",
        description="Get the chain id and network the server is connected to.",
        schema={"type": "object", "properties": {}},
    ),
    ToolDescriptor(
        name="get_balance",
        title="Get VET balance",
        description="Get the VET balance of an address, in base units and formatted. Defaults to the agent wallet.",
        schema={
            "type": "object",
            "properties": {
                "address": {
                    "type": "string",
                    "pattern": ADDRESS_PATTERN,
                    "description": "Address to query (20-byte hex). Defaults to the agent wallet.",
                },
            },
        },
    ),
    ToolDescriptor(
        name="get_block_number",
        title="Get block number",
        description="Get the number of the latest block.",
        schema={"type": "object", "properties": {}},
    ),
    ToolDescriptor(
        name="convert_to_base_units",
        title="Convert to base units",
        description="Convert a decimal token amount into integer base units (1 VET = 10^18 wei).",
        schema={
            "type": "object",
            "properties": {
                "amount": {
                    "anyOf": [
                        {"type": "number", "minimum": 0},
                        {"type": "string", "pattern": r"^\d+(\.\d+)?$"},
                    ],
                    "description": "Amount in token units, e.g. 1.5",
                },
                "decimals": _DECIMALS_SCHEMA,
            },
            "required": ["amount"],
        },
    ),
    ToolDescriptor(
        name="convert_from_base_units",
        title="Convert from base units",
        description="Convert integer base units into a decimal token amount.",
        schema={
            "type": "object",
            "properties": {
                "amount": {
                    "type": ["string", "integer"],
                    "pattern": r"^\d+$",
                    "minimum": 0,
                    "description": "Amount in base units",
                },
                "decimals": _DECIMALS_SCHEMA,
            },
            "required": ["amount"],
        },
    ),
]

Handler = Callable[..., Awaitable[Dict[str, Any]]]


def _network(config: VeChainConfig) -> str:
    return "mainnet" if config.mainnet else "testnet"


def _decimals(args: Mapping[str, Any]) -> int:
    value = args.get("decimals")
    return NATIVE_DECIMALS if value is None else int(value)


def format_units(amount: int, decimals: int) -> str:
    value = Decimal(amount).scaleb(-decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_units(amount: Any, decimals: int) -> int:
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Amount must be a finite number, got {amount}.")
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places.")
    return int(scaled)


async def _get_address(args: Mapping[str, Any], *, client: RpcClient, config: VeChainConfig) -> Dict[str, Any]:
    private_key = wallet.load_private_key(config.secret_key)
    return {"address": wallet.address_of(private_key)}


async def _get_chain(args: Mapping[str, Any], *, client: RpcClient, config: VeChainConfig) -> Dict[str, Any]:
    return {"type": "evm", "id": await client.chain_id(), "network": _network(config)}


async def _get_balance(args: Mapping[str, Any], *, client: RpcClient, config: VeChainConfig) -> Dict[str, Any]:
    address = args.get("address")
    if address:
        address = normalize_address(address)
    else:
        address = wallet.address_of(wallet.load_private_key(config.secret_key))
    balance = await client.get_balance(address)
    return {
        "address": address,
        "symbol": NATIVE_SYMBOL,
        "decimals": NATIVE_DECIMALS,
        "balance": str(balance),
        "formatted": format_units(balance, NATIVE_DECIMALS),
    }


async def _get_block_number(args: Mapping[str, Any], *, client: RpcClient, config: VeChainConfig) -> Dict[str, Any]:
    return {"blockNumber": await client.block_number(), "network": _network(config)}


async def _convert_to_base_units(args: Mapping[str, Any], **_: Any) -> Dict[str, Any]:
    decimals = _decimals(args)
    return {"amount": str(args["amount"]), "decimals": decimals, "baseUnits": str(parse_units(args["amount"], decimals))}


async def _convert_from_base_units(args: Mapping[str, Any], **_: Any) -> Dict[str, Any]:
    decimals = _decimals(args)
    return {"baseUnits": str(args["amount"]), "decimals": decimals, "amount": format_units(int(args["amount"]), decimals)}


_HANDLERS: Dict[str, Handler] = {
    "get_address": _get_address,
    "get_chain": _get_chain,
    "get_balance": _get_balance,
    "get_block_number": _get_block_number,
    "convert_to_base_units": _convert_to_base_units,
    "convert_from_base_units": _convert_from_base_units,
}


async def dispatch(
    name: str,
    args: Mapping[str, Any],
    *,
    client: RpcClient = default_rpc_client,
    config: VeChainConfig = default_config,
) -> Dict[str, Any]:
    """Run the on-chain tool ``name`` with already validated ``args``."""
    handler = _HANDLERS.get(name)
    if handler is None:
        return {"error": "Unknown tool", "reason": f'No on-chain tool named "{name}".', "tool": name}
    try:
        return await handler(args, client=client, config=config)
    except RequestTimeoutError as exc:
        return {"error": "Request timed out", "reason": str(exc), "url": exc.url, "tool": name}
    except ThorApiError as exc:
        logger.info("tool=%s JSON-RPC call failed", name, extra={"tool": name})
        return {"error": "JSON-RPC call failed", "reason": str(exc), "url": exc.url, "tool": name}
    except wallet.WalletError as exc:
        return {"error": "Wallet not configured", "reason": str(exc), "tool": name}
    except ValueError as exc:
        return {"error": "Invalid amount", "reason": str(exc), "tool": name}
