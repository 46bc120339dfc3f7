"""
Configuration helpers for the VeChain MCP server.

This module centralizes network selection, endpoint URLs, the HTTP timeout, and
the agent signing key. No secrets are stored in the repository; the key is read
from the environment or a local file if present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Network endpoints
MAINNET_THOREST_URL = "https://sync-mainnet.vechain.org"
TESTNET_THOREST_URL = "https://testnet.vechain.org"
MAINNET_RPC_URL = "https://mainnet.rpc.vechain.org"
TESTNET_RPC_URL = "https://testnet.rpc.vechain.org"
DEFAULT_DOCS_URL = os.getenv("VECHAIN_DOCS_URL", "https://docs.vechain.org")

ADDRESS_PATTERN = r"^(0x)?[0-9a-fA-F]{40}$"
TXID_PATTERN = r"^0x[0-9a-fA-F]{64}$"

DEFAULT_HTTP_TIMEOUT = 15.0

# Signing key handling
SECRET_KEY_ENV_VAR = "AGENT_SECRET_KEY"
SECRET_KEY_FILE_ENV_VAR = "AGENT_SECRET_KEY_FILE"

ENVIRONMENT = os.getenv("ENVIRONMENT", "")
LOG_LEVEL = os.getenv("VECHAIN_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("VECHAIN_MCP_LOG_FORMAT", "json")  # json or plain

MCP_SERVER_NAME = "vechain-mcp-server"
MCP_SERVER_VERSION = "1.0.0"
MCP_CLIENT_NAME = "vechain-docs-client"
MCP_CLIENT_VERSION = "1.0.0"


def _load_timeout() -> float:
    raw_timeout = os.getenv("VECHAIN_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return DEFAULT_HTTP_TIMEOUT
    return DEFAULT_HTTP_TIMEOUT


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _load_port() -> int:
    try:
        return int(os.getenv("PORT", "3000"))
    except ValueError:
        return 3000


def is_mainnet(environment: Optional[str] = None) -> bool:
    value = ENVIRONMENT if environment is None else environment
    return value.strip().upper() == "MAINNET"


def load_secret_key() -> Optional[str]:
    """
    Load the agent signing key from environment or a local file.

    Returns:
        The hex-encoded key if available, otherwise None. The key is never logged
        or returned to callers.
    """
    env_key = os.getenv(SECRET_KEY_ENV_VAR)
    if env_key:
        return env_key.strip()

    key_path = os.getenv(SECRET_KEY_FILE_ENV_VAR)
    if key_path:
        path = Path(key_path)
        if path.is_file():
            return path.read_text(encoding="utf-8").strip() or None

    return None


@dataclass(slots=True)
class VeChainConfig:
    """Runtime configuration for VeChain node access and the MCP transport."""

    mainnet: bool = is_mainnet()
    thorest_url: str = os.getenv(
        "VECHAIN_THOREST_URL", MAINNET_THOREST_URL if is_mainnet() else TESTNET_THOREST_URL
    )
    rpc_url: str = os.getenv(
        "VECHAIN_RPC_URL", MAINNET_RPC_URL if is_mainnet() else TESTNET_RPC_URL
    )
    docs_url: str = DEFAULT_DOCS_URL
    timeout: float = _load_timeout()
    secret_key: Optional[str] = load_secret_key()
    use_streamable_http: bool = _env_flag("USE_STREAMABLE_HTTP", default=True)
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = _load_port()
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    strict_tool_names: bool = _env_flag("VECHAIN_MCP_STRICT_TOOL_NAMES")

    @classmethod
    def for_network(cls, environment: str, **overrides) -> "VeChainConfig":
        """Build a config for an explicit network, ignoring URL env overrides."""
        mainnet = is_mainnet(environment)
        values = {
            "mainnet": mainnet,
            "thorest_url": MAINNET_THOREST_URL if mainnet else TESTNET_THOREST_URL,
            "rpc_url": MAINNET_RPC_URL if mainnet else TESTNET_RPC_URL,
        }
        values.update(overrides)
        return cls(**values)


default_config = VeChainConfig()
