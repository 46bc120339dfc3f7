"""
Key handling and signing primitives for VeChain.

VeChain uses secp256k1 keys and Ethereum-style addresses, but hashes
certificates and transactions with blake2b-256 instead of keccak-256. The agent
key comes from configuration and is never logged or echoed back.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import keccak
import rlp
from rlp.exceptions import DecodingError

from vechain_mcp.config import SECRET_KEY_ENV_VAR
from vechain_mcp.tools.validators import is_hex_string, strip_hex_prefix

logger = logging.getLogger(__name__)

# BIP-44 path for the first VET account (coin type 818).
VET_DERIVATION_PATH = "m/44'/818'/0'/0/0"
MNEMONIC_SIZES = (12, 15, 18, 21, 24)

DYNAMIC_FEE_TX_TYPE = 0x51
LEGACY_BODY_FIELDS = 9
DYNAMIC_FEE_BODY_FIELDS = 10
DELEGATION_FEATURE = 0x01

Account.enable_unaudited_hdwallet_features()


class WalletError(Exception):
    """Raised when the agent key is missing or a payload cannot be signed."""


def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def load_private_key(secret_key: Optional[str]) -> keys.PrivateKey:
    """Parse a hex-encoded 32-byte private key."""
    if not secret_key:
        raise WalletError(f"Missing {SECRET_KEY_ENV_VAR} variable to use this tool.")
    if not is_hex_string(secret_key):
        raise WalletError(f"{SECRET_KEY_ENV_VAR} must be a hex-encoded private key.")
    raw = bytes.fromhex(strip_hex_prefix(secret_key.strip()))
    try:
        return keys.PrivateKey(raw)
    except KeyValidationError as exc:
        raise WalletError(f"{SECRET_KEY_ENV_VAR} is not a valid secp256k1 private key.") from exc


def address_of(private_key: keys.PrivateKey) -> str:
    return private_key.public_key.to_checksum_address()


def sign_hash(private_key: keys.PrivateKey, message_hash: bytes) -> bytes:
    """Return the 65-byte ``r || s || v`` signature with ``v`` in {0, 1}."""
    return private_key.sign_msg_hash(message_hash).to_bytes()


def create_wallet(word_count: int = 12) -> Dict[str, str]:
    if word_count not in MNEMONIC_SIZES:
        raise WalletError(f"Unsupported mnemonic length {word_count}; expected one of {MNEMONIC_SIZES}.")
    account, mnemonic = Account.create_with_mnemonic(num_words=word_count, account_path=VET_DERIVATION_PATH)
    private_key = keys.PrivateKey(bytes(account.key))
    return {
        "mnemonic": mnemonic,
        "derivationPath": VET_DERIVATION_PATH,
        "address": account.address,
        "publicKey": to_hex(private_key.public_key.to_bytes()),
        "secretKeyHex": to_hex(bytes(account.key)),
    }


def sign_message(private_key: keys.PrivateKey, message: str) -> Dict[str, str]:
    message_hash = keccak(text=message)
    return {
        "signer": address_of(private_key),
        "hash": to_hex(message_hash),
        "signature": to_hex(sign_hash(private_key, message_hash)),
    }


def _certificate_payload(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, dict) and set(payload) == {"type", "content"}:
        return dict(payload)
    if isinstance(payload, str):
        return {"type": "text", "content": payload}
    return {"type": "text", "content": json.dumps(payload, sort_keys=True, separators=(",", ":"))}


def encode_certificate(certificate: Dict[str, Any]) -> bytes:
    """Canonical encoding: sorted keys, no whitespace, lowercase signer, no signature."""
    body = {key: value for key, value in certificate.items() if key != "signature"}
    body["signer"] = str(body.get("signer", "")).lower()
    return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sign_certificate(
    private_key: keys.PrivateKey,
    *,
    purpose: str,
    payload: Any,
    domain: str,
    timestamp: int,
) -> Dict[str, Any]:
    certificate: Dict[str, Any] = {
        "purpose": purpose,
        "payload": _certificate_payload(payload),
        "domain": domain,
        "timestamp": timestamp,
        "signer": address_of(private_key).lower(),
    }
    certificate["signature"] = to_hex(sign_hash(private_key, blake2b256(encode_certificate(certificate))))
    return certificate


@dataclass
class DecodedTransaction:
    fields: List[Any]
    typed: bool

    @property
    def kind(self) -> str:
        return "dynamic-fee" if self.typed else "legacy"

    def encode_unsigned(self) -> bytes:
        encoded = rlp.encode(self.fields)
        return bytes([DYNAMIC_FEE_TX_TYPE]) + encoded if self.typed else encoded

    def encode_signed(self, signature: bytes) -> bytes:
        encoded = rlp.encode(self.fields + [signature])
        return bytes([DYNAMIC_FEE_TX_TYPE]) + encoded if self.typed else encoded

    def is_delegated(self) -> bool:
        reserved = self.fields[-1]
        if not isinstance(reserved, (list, tuple)) or not reserved:
            return False
        features = int.from_bytes(reserved[0], "big") if isinstance(reserved[0], bytes) else 0
        return bool(features & DELEGATION_FEATURE)


def decode_transaction(raw_transaction: str) -> DecodedTransaction:
    """
    Decode a legacy or dynamic-fee (type 0x51) VeChain transaction.

    A signature already present on the input is discarded.
    """
    if not is_hex_string(raw_transaction):
        raise WalletError("rawTransaction must be a hex string.")
    data = bytes.fromhex(strip_hex_prefix(raw_transaction.strip()))
    if not data:
        raise WalletError("rawTransaction is empty.")

    typed = data[0] == DYNAMIC_FEE_TX_TYPE
    body = data[1:] if typed else data
    expected = DYNAMIC_FEE_BODY_FIELDS if typed else LEGACY_BODY_FIELDS
    try:
        fields = rlp.decode(body)
    except DecodingError as exc:
        raise WalletError(f"Unable to decode transaction: {exc}") from exc

    if not isinstance(fields, (list, tuple)) or len(fields) not in (expected, expected + 1):
        raise WalletError(
            f"Unexpected transaction layout: expected {expected} fields, got "
            f"{len(fields) if isinstance(fields, (list, tuple)) else 'a scalar'}."
        )
    return DecodedTransaction(fields=list(fields[:expected]), typed=typed)


def sign_transaction(private_key: keys.PrivateKey, raw_transaction: str) -> Dict[str, str]:
    decoded = decode_transaction(raw_transaction)
    if decoded.is_delegated():
        raise WalletError("Delegated (fee-payer) transactions are not supported.")
    signing_hash = blake2b256(decoded.encode_unsigned())
    signature = sign_hash(private_key, signing_hash)
    signer = address_of(private_key)
    tx_id = blake2b256(signing_hash + bytes.fromhex(strip_hex_prefix(signer)))
    logger.info("Signed %s transaction %s", decoded.kind, to_hex(tx_id))
    return {
        "type": decoded.kind,
        "id": to_hex(tx_id),
        "signer": signer,
        "signedTransaction": to_hex(decoded.encode_signed(signature)),
    }
