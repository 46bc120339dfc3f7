"""
Thin HTTP clients for the VeChain Thorest REST API and the Ethereum-compatible
JSON-RPC endpoint.

Both map transport and upstream failures to internal exceptions carrying the
attempted URL and the raw upstream message, which the tool layer turns into
error payloads.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from vechain_mcp.config import VeChainConfig, default_config

logger = logging.getLogger(__name__)


class ThorApiError(Exception):
    """Base exception for VeChain node errors."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NodeUnreachableError(ThorApiError):
    """Raised when the node cannot be reached."""


class RequestTimeoutError(ThorApiError, TimeoutError):
    """Raised when the node does not answer within the configured timeout."""


class RpcError(ThorApiError):
    """Raised when a JSON-RPC call returns an error object."""

    def __init__(self, message: str, *, code: Optional[int] = None, url: Optional[str] = None) -> None:
        super().__init__(message, url=url)
        self.code = code


def _full_url(url: str, params: Optional[Dict[str, Any]]) -> str:
    return str(httpx.URL(url, params=params or None))


def _reason_phrase(response: httpx.Response) -> str:
    return getattr(response, "reason_phrase", "") or ""


class _BaseClient:
    def __init__(
        self,
        base_url: str,
        timeout: float,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class ThorestClient(_BaseClient):
    """Async client for the read-only Thorest endpoints used by the tools."""

    def __init__(
        self,
        config: VeChainConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        super().__init__(self.config.thorest_url, self.config.timeout, async_client=async_client)

    async def _request(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        full_url = _full_url(url, params)
        client = await self._get_client()
        try:
            response = await client.get(url, params=params or None)
        except httpx.TimeoutException as exc:
            logger.warning("VeChain node timed out for path %s", path)
            raise RequestTimeoutError("Request timed out", url=full_url) from exc
        except httpx.RequestError as exc:
            logger.warning("VeChain node unreachable for path %s", path)
            raise NodeUnreachableError(f"Node unreachable: {exc}", url=full_url) from exc

        if response.status_code >= 400:
            body = response.text.strip() if isinstance(getattr(response, "text", None), str) else ""
            message = f"VeChain node responded {response.status_code} {_reason_phrase(response)}".rstrip()
            if body:
                message = f"{message}: {body}"
            raise ThorApiError(message, url=full_url, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ThorApiError(
                "Unexpected response from node.", url=full_url, status_code=response.status_code
            ) from exc

    async def fetch_account(self, address: str, *, revision: Any = None) -> Any:
        """Retrieve balance, energy and code flag for an account."""
        params: Dict[str, Any] = {}
        if revision is not None:
            params["revision"] = str(revision)
        return await self._request(f"/accounts/{quote(address, safe='')}", params=params)

    async def fetch_transaction(
        self,
        tx_id: str,
        *,
        pending: Optional[bool] = None,
        raw: Optional[bool] = None,
        head: Optional[str] = None,
    ) -> Any:
        """Retrieve a transaction by id."""
        params: Dict[str, Any] = {}
        if pending is not None:
            params["pending"] = pending
        if raw is not None:
            params["raw"] = raw
        if head:
            params["head"] = head
        return await self._request(f"/transactions/{quote(tx_id, safe='')}", params=params)

    async def fetch_block(
        self,
        revision: Any,
        *,
        expanded: Optional[bool] = None,
        raw: Optional[bool] = None,
    ) -> Any:
        """Retrieve a block by id, number or keyword."""
        params: Dict[str, Any] = {}
        if expanded is not None:
            params["expanded"] = expanded
        if raw is not None:
            params["raw"] = raw
        return await self._request(f"/blocks/{quote(str(revision), safe='')}", params=params)

    async def fetch_priority_fee(self) -> Any:
        """Retrieve the suggested priority fee for the next blocks."""
        return await self._request("/fees/priority")


class RpcClient(_BaseClient):
    """Async JSON-RPC client for the node's Ethereum-compatible endpoint."""

    def __init__(
        self,
        config: VeChainConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        super().__init__(self.config.rpc_url, self.config.timeout, async_client=async_client)
        self._ids = itertools.count(1)

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        client = await self._get_client()
        try:
            response = await client.post(self.base_url, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("JSON-RPC endpoint timed out for %s", method)
            raise RequestTimeoutError("Request timed out", url=self.base_url) from exc
        except httpx.RequestError as exc:
            logger.warning("JSON-RPC endpoint unreachable for %s", method)
            raise NodeUnreachableError(f"Node unreachable: {exc}", url=self.base_url) from exc

        if response.status_code >= 400:
            raise ThorApiError(
                f"JSON-RPC endpoint responded {response.status_code} {_reason_phrase(response)}".rstrip(),
                url=self.base_url,
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ThorApiError("Unexpected response from node.", url=self.base_url) from exc
        if not isinstance(data, dict):
            raise ThorApiError("Unexpected response from node.", url=self.base_url)

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise RpcError(message or "JSON-RPC error", code=code, url=self.base_url)
        return data.get("result")

    def _quantity(self, value: Any) -> int:
        if not isinstance(value, str):
            raise ThorApiError("Unexpected response from node.", url=self.base_url)
        try:
            return int(value, 16)
        except ValueError as exc:
            raise ThorApiError(f"Unexpected quantity from node: {value}", url=self.base_url) from exc

    async def chain_id(self) -> int:
        return self._quantity(await self.call("eth_chainId"))

    async def block_number(self) -> int:
        return self._quantity(await self.call("eth_blockNumber"))

    async def get_balance(self, address: str, block: str = "latest") -> int:
        return self._quantity(await self.call("eth_getBalance", [address, block]))


default_thorest_client = ThorestClient()
default_rpc_client = RpcClient()
