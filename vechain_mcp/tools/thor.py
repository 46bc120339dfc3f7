"""Read-only Thorest tools: accounts, transactions, blocks and fees."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from vechain_mcp.config import ADDRESS_PATTERN, TXID_PATTERN
from vechain_mcp.thor_api import RequestTimeoutError, ThorApiError, default_thorest_client
from vechain_mcp.tools.validators import normalize_address

logger = logging.getLogger(__name__)

Revision = Union[
    Literal["best", "justified", "finalized"],
    Annotated[int, Field(strict=True, ge=0)],
    Annotated[str, Field(min_length=1, description="Block ID (hex) or block number as string")],
]


class GetAccountInput(BaseModel):
    address: str = Field(
        pattern=ADDRESS_PATTERN,
        description="Account/contract address (20-byte hex, with or without 0x prefix)",
    )
    revision: Revision = Field(
        default="best",
        description="Revision: best | justified | finalized | block number | block ID (hex). If omitted, best is used.",
    )


class GetTransactionInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tx_id: str = Field(alias="id", pattern=TXID_PATTERN, description="Transaction ID (0x-prefixed 32-byte hex)")
    pending: bool = Field(default=False, description="Include pending transactions (meta may be null). Default: false")
    raw: bool = Field(default=False, description="Include raw hex transaction in response. Default: false")
    head: Optional[str] = Field(default=None, description="Head block ID to use; defaults to best if omitted")


class GetBlockInput(BaseModel):
    revision: Revision = Field(
        default="best",
        description="Block revision: hex ID, block number, or keywords: best | justified | finalized",
    )
    expanded: bool = Field(
        default=False,
        description="Return transactions expanded (objects) instead of just IDs (default: false)",
    )
    raw: bool = Field(default=False, description="Return RLP-encoded block instead of structured JSON (default: false)")


class NoInput(BaseModel):
    pass


def _failure(action: str, exc: ThorApiError, **context: Any) -> Dict[str, Any]:
    error = "Request timed out" if isinstance(exc, RequestTimeoutError) else action
    payload: Dict[str, Any] = {"error": error, "reason": str(exc)}
    if exc.url:
        payload["url"] = exc.url
    payload.update(context)
    return payload


async def get_account(
    address: str,
    revision: Any = "best",
    *,
    client=default_thorest_client,
) -> Dict[str, Any]:
    """
    Get balance, energy and code flag of an account or contract.

    Args:
        address: 20-byte hex address, 0x prefix optional.
        revision: best | justified | finalized, a block number or a block id.
        client: Thorest client (override for testing).
    """
    normalized = normalize_address(address)
    context = {"address": normalized, "revision": revision}
    try:
        data = await client.fetch_account(normalized, revision=revision)
    except ThorApiError as exc:
        logger.info("Account lookup failed for %s", normalized)
        return _failure("Failed to fetch account", exc, **context)
    if data is None:
        return {"message": "Account not found (or revision not available)", **context}
    return data


async def get_transaction(
    tx_id: str,
    pending: bool = False,
    raw: bool = False,
    head: Optional[str] = None,
    *,
    client=default_thorest_client,
) -> Dict[str, Any]:
    """Get a transaction by id, optionally from the pending pool or as raw hex."""
    context = {"id": tx_id, "pending": pending, "raw": raw, "head": head or "best"}
    try:
        data = await client.fetch_transaction(tx_id, pending=pending, raw=raw, head=head)
    except ThorApiError as exc:
        return _failure("Failed to fetch transaction", exc, **context)
    if data is None:
        return {"message": "Transaction not found", **context}
    return data


async def get_block(
    revision: Any = "best",
    expanded: bool = False,
    raw: bool = False,
    *,
    client=default_thorest_client,
) -> Dict[str, Any]:
    """Get a block by id, number or keyword."""
    context = {"revision": str(revision), "expanded": expanded, "raw": raw}
    try:
        data = await client.fetch_block(revision, expanded=expanded, raw=raw)
    except ThorApiError as exc:
        return _failure("Failed to fetch VeChain block", exc, **context)
    if data is None:
        return {"message": "Block not found", **context}
    return data


async def get_priority_fee(*, client=default_thorest_client) -> Dict[str, Any]:
    try:
        return await client.fetch_priority_fee()
    except ThorApiError as exc:
        return _failure("Failed to fetch priority fee", exc)
