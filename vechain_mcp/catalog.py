"""
The server's tool catalog.

Wires the native Thor/wallet tools and the schema-document on-chain tools into
one aggregator and dispatcher. Schemas are compiled once, when the dispatcher
is built.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Dict, List, Mapping, Optional

from vechain_mcp.bridge import Dispatcher, ToolAggregator
from vechain_mcp.config import VeChainConfig, default_config
from vechain_mcp.metrics import MetricsRecorder, default_metrics
from vechain_mcp.providers import NativeTool, NativeToolProvider, SchemaToolProvider
from vechain_mcp.thor_api import RpcClient, ThorestClient, default_rpc_client, default_thorest_client
from vechain_mcp.tools import docs, onchain, thor, wallet


def native_tools(
    config: VeChainConfig,
    thorest_client: ThorestClient,
    *,
    call_docs: docs.DocsCaller = docs.call_docs_tool,
) -> List[NativeTool]:
    return [
        NativeTool(
            name="search_documentation",
            title="Search VeChain Documentation",
            description=(
                "Search across the VeChain documentation to find relevant information, code examples, "
                "API references, and guides. Returns contextual content with titles and direct links."
            ),
            model=docs.SearchDocumentationInput,
            handler=partial(docs.search_documentation, config=config, call_docs=call_docs),
        ),
        NativeTool(
            name="get_account",
            title="Retrieve account details",
            description=(
                "Get information about a VeChain account/contract by address. Optionally specify a "
                "revision (best | justified | finalized | block number | block ID)."
            ),
            model=thor.GetAccountInput,
            handler=partial(thor.get_account, client=thorest_client),
        ),
        NativeTool(
            name="get_transaction",
            title="Retrieve a transaction by ID",
            description=(
                "Get a VeChain transaction by its ID. Optionally include pending txs (meta may be null), "
                "return raw hex, or pin to a specific head block."
            ),
            model=thor.GetTransactionInput,
            handler=partial(thor.get_transaction, client=thorest_client),
        ),
        NativeTool(
            name="get_block",
            title="Get a VeChain block",
            description=(
                "Retrieve information about a VeChain block by its revision "
                "(block ID, number, or keywords: best | justified | finalized)."
            ),
            model=thor.GetBlockInput,
            handler=partial(thor.get_block, client=thorest_client),
        ),
        NativeTool(
            name="get_priority_fee",
            title="Suggest a priority fee",
            description="Fetch a suggested priority fee for including a transaction in the next blocks.",
            model=thor.NoInput,
            handler=partial(thor.get_priority_fee, client=thorest_client),
        ),
        NativeTool(
            name="create_wallet",
            title="Create a VeChain wallet (mnemonic + keys)",
            description=(
                "Generate a BIP-39 mnemonic (12/15/18/21/24 words) and derive the key at m/44'/818'/0'/0/0. "
                "The private key is redacted unless includeSecret=true."
            ),
            model=wallet.CreateWalletInput,
            handler=wallet.create_wallet,
        ),
        NativeTool(
            name="sign_certificate",
            title="Sign certificate",
            description="Create and sign a canonical certificate with purpose, payload, domain and timestamp.",
            model=wallet.SignCertificateInput,
            handler=partial(wallet.sign_certificate, config=config),
        ),
        NativeTool(
            name="sign_message",
            title="Sign message",
            description="Sign the keccak-256 hash of a UTF-8 message with the agent key.",
            model=wallet.SignMessageInput,
            handler=partial(wallet.sign_message, config=config),
        ),
        NativeTool(
            name="sign_raw_transaction",
            title="Sign raw transaction",
            description="Decode a raw VeChain transaction and sign it with the agent key.",
            model=wallet.SignRawTransactionInput,
            handler=partial(wallet.sign_raw_transaction, config=config),
        ),
    ]


def build_dispatcher(
    config: VeChainConfig = default_config,
    *,
    thorest_client: Optional[ThorestClient] = None,
    rpc_client: Optional[RpcClient] = None,
    call_docs: docs.DocsCaller = docs.call_docs_tool,
    metrics: MetricsRecorder = default_metrics,
) -> Dispatcher:
    """Build providers in registration order and aggregate them."""
    thorest_client = thorest_client or default_thorest_client
    rpc_client = rpc_client or default_rpc_client
    providers = [
        NativeToolProvider("vechain", native_tools(config, thorest_client, call_docs=call_docs)),
        SchemaToolProvider(
            "onchain",
            onchain.ONCHAIN_TOOLS,
            partial(onchain.dispatch, client=rpc_client, config=config),
        ),
    ]
    aggregator = ToolAggregator(providers, strict=config.strict_tool_names)
    return Dispatcher(aggregator, metrics=metrics)


default_dispatcher = build_dispatcher()


def list_tools() -> List[Dict[str, Any]]:
    """Return the external tool catalog."""
    return default_dispatcher.aggregator.list_tools()


async def call_tool(tool_name: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Dispatch to a tool by name and return the response envelope."""
    return await default_dispatcher.handle(tool_name, params)
