"""Shared validation helpers for VeChain MCP tools."""

from __future__ import annotations

import re
from typing import Optional

HEX_REGEX = re.compile(r"^(0x)?([0-9a-fA-F]{2})*$")


def normalize_address(address: str) -> str:
    """Lowercase an address and make sure it carries the 0x prefix."""
    value = address.strip().lower()
    return value if value.startswith("0x") else f"0x{value}"


def strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def is_hex_string(value: Optional[str]) -> bool:
    """True for an even-length hex string, with or without 0x."""
    if not isinstance(value, str) or not value.strip():
        return False
    return bool(HEX_REGEX.fullmatch(value.strip()))
