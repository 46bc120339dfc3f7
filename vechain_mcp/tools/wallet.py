"""Wallet tools: key generation and signing with the agent key."""

from __future__ import annotations

import logging
import time
from typing import Annotated, Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from vechain_mcp import wallet
from vechain_mcp.config import VeChainConfig, default_config

logger = logging.getLogger(__name__)

REDACTED = "<redacted>"


class CreateWalletInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    word_count: Literal[12, 15, 18, 21, 24] = Field(
        default=12, alias="wordlistSize", description="Length of the BIP-39 mnemonic wordlist. Default: 12"
    )
    include_secret: bool = Field(
        default=False,
        alias="includeSecret",
        description="Include the derived private key in the response (handle with care). Default: false",
    )


class SignCertificateInput(BaseModel):
    purpose: Literal["identification", "attestation", "verification"] = "identification"
    payload: Any = Field(default=None, description="Content to be attested (string or JSON)")
    domain: str = Field(min_length=1, description="Scope or domain where it is valid")
    timestamp: Optional[Annotated[int, Field(strict=True, gt=0)]] = Field(
        default=None, description="Unix timestamp in seconds; defaults to now"
    )


class SignMessageInput(BaseModel):
    message: str = Field(description="UTF-8 message to sign")


class SignRawTransactionInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    raw_transaction: str = Field(
        alias="rawTransaction", description="Hex-encoded RLP transaction (legacy or type 0x51)"
    )


def _wallet_failure(action: str, exc: wallet.WalletError) -> Dict[str, Any]:
    return {"error": action, "reason": str(exc)}


async def create_wallet(word_count: int = 12, include_secret: bool = False) -> Dict[str, Any]:
    """
    Generate a BIP-39 mnemonic and derive the first VET account from it.

    The private key is redacted unless ``include_secret`` is set.
    """
    try:
        result = wallet.create_wallet(word_count)
    except wallet.WalletError as exc:
        return _wallet_failure("Failed to create wallet", exc)
    if not include_secret:
        result["secretKeyHex"] = REDACTED
    return result


async def sign_certificate(
    purpose: str = "identification",
    payload: Any = None,
    domain: str = "",
    timestamp: Optional[int] = None,
    *,
    config: VeChainConfig = default_config,
) -> Dict[str, Any]:
    """Build a VeChain certificate and sign it with the agent key."""
    try:
        private_key = wallet.load_private_key(config.secret_key)
        return wallet.sign_certificate(
            private_key,
            purpose=purpose,
            payload=payload,
            domain=domain,
            timestamp=timestamp or int(time.time()),
        )
    except wallet.WalletError as exc:
        return _wallet_failure("Failed to sign certificate", exc)


async def sign_message(message: str, *, config: VeChainConfig = default_config) -> Dict[str, Any]:
    try:
        private_key = wallet.load_private_key(config.secret_key)
    except wallet.WalletError as exc:
        return _wallet_failure("Failed to sign message", exc)
    return wallet.sign_message(private_key, message)


async def sign_raw_transaction(raw_transaction: str, *, config: VeChainConfig = default_config) -> Dict[str, Any]:
    """Decode a raw transaction and return it signed by the agent key."""
    try:
        private_key = wallet.load_private_key(config.secret_key)
        return wallet.sign_transaction(private_key, raw_transaction)
    except wallet.WalletError as exc:
        logger.info("Transaction signing rejected: %s", exc)
        return _wallet_failure("Failed to sign transaction", exc)
