"""Merge tools from several providers into one catalog with a routing table."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from vechain_mcp.bridge.errors import DuplicateToolError
from vechain_mcp.bridge.registry import ValidatorRegistry, build_registry
from vechain_mcp.bridge.types import ProviderBinding, ToolDescriptor

logger = logging.getLogger(__name__)


class ToolAggregator:
    """
    Flat tool catalog over N independent providers.

    Providers are scanned in registration order. When two providers declare the
    same tool name, the later provider's descriptor and handler win and the
    earlier tool becomes unreachable by name. With ``strict=True`` a duplicate
    name raises ``DuplicateToolError`` instead.

    Everything is built once in ``__init__`` and is read-only afterwards.
    """

    def __init__(self, providers: Sequence[ProviderBinding], *, strict: bool = False) -> None:
        self._providers: List[ProviderBinding] = list(providers)
        routes: Dict[str, int] = {}
        descriptors: Dict[str, ToolDescriptor] = {}
        for index, provider in enumerate(self._providers):
            for descriptor in provider.list_tools():
                previous = routes.get(descriptor.name)
                if previous is not None:
                    earlier = self._providers[previous].name
                    if strict:
                        raise DuplicateToolError(descriptor.name, earlier, provider.name)
                    logger.warning(
                        "tool=%s declared by %s overrides %s",
                        descriptor.name,
                        provider.name,
                        earlier,
                        extra={"tool": descriptor.name},
                    )
                    # Re-insert so catalog order follows the winning provider.
                    descriptors.pop(descriptor.name)
                routes[descriptor.name] = index
                descriptors[descriptor.name] = descriptor
        self._routes: Mapping[str, int] = MappingProxyType(routes)
        self._descriptors: Mapping[str, ToolDescriptor] = MappingProxyType(descriptors)
        self.registry: ValidatorRegistry = build_registry(descriptors.values())
        logger.info(
            "Aggregated %d tools from %d providers", len(descriptors), len(self._providers)
        )

    def __contains__(self, name: object) -> bool:
        return name in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def providers(self) -> Sequence[ProviderBinding]:
        return tuple(self._providers)

    def descriptor(self, name: str) -> Optional[ToolDescriptor]:
        return self._descriptors.get(name)

    def provider_for(self, name: str) -> Optional[ProviderBinding]:
        index = self._routes.get(name)
        if index is None:
            return None
        return self._providers[index]

    def list_tools(self) -> List[Dict[str, Any]]:
        """Return the external catalog, echoing each tool's declared schema."""
        return [
            {
                "name": descriptor.name,
                "title": descriptor.title,
                "description": descriptor.description,
                "inputSchema": descriptor.input_schema(),
            }
            for descriptor in self._descriptors.values()
        ]
