"""HTTP client wrappers for VeChain nodes."""

from .client import (
    NodeUnreachableError,
    RequestTimeoutError,
    RpcClient,
    RpcError,
    ThorApiError,
    ThorestClient,
    default_rpc_client,
    default_thorest_client,
)

__all__ = [
    "ThorestClient",
    "RpcClient",
    "ThorApiError",
    "NodeUnreachableError",
    "RequestTimeoutError",
    "RpcError",
    "default_thorest_client",
    "default_rpc_client",
]
