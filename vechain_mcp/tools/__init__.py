"""LLM-facing tool implementations."""

from . import docs, onchain, thor, validators, wallet

__all__ = ["docs", "onchain", "thor", "validators", "wallet"]
