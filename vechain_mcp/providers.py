"""
Provider bindings: how each family of tools is listed and invoked.

Native tools carry a pydantic model and a handler taking keyword arguments.
Schema-document tools carry a JSON-Schema mapping and share a single dispatch
function that receives ``(name, args)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence, Type

from pydantic import BaseModel

from vechain_mcp.bridge.types import ToolDescriptor

ToolCallable = Callable[..., Awaitable[Any]]
DispatchCallable = Callable[[str, Mapping[str, Any]], Awaitable[Any]]


class UnknownProviderTool(LookupError):
    pass


@dataclass(frozen=True)
class NativeTool:
    name: str
    title: str
    description: str
    model: Type[BaseModel]
    handler: ToolCallable

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(name=self.name, title=self.title, description=self.description, schema=self.model)


class NativeToolProvider:
    """Tools whose inputs are pydantic models; validated args are passed as keywords."""

    def __init__(self, name: str, tools: Sequence[NativeTool]) -> None:
        self.name = name
        self._tools: Dict[str, NativeTool] = {tool.name: tool for tool in tools}

    def list_tools(self) -> List[ToolDescriptor]:
        return [tool.descriptor() for tool in self._tools.values()]

    async def invoke(self, name: str, args: Mapping[str, Any]) -> Any:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownProviderTool(name)
        return await tool.handler(**args)


class SchemaToolProvider:
    """Tools described by schema documents and executed by one dispatch function."""

    def __init__(self, name: str, tools: Sequence[ToolDescriptor], dispatch: DispatchCallable) -> None:
        self.name = name
        self._tools = list(tools)
        self._dispatch = dispatch

    def list_tools(self) -> List[ToolDescriptor]:
        return list(self._tools)

    async def invoke(self, name: str, args: Mapping[str, Any]) -> Any:
        return await self._dispatch(name, dict(args))
