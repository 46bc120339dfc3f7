"""Shared data model for the tool bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Protocol, Sequence, Type, Union, runtime_checkable

from pydantic import BaseModel, TypeAdapter


@runtime_checkable
class Validator(Protocol):
    """
    Single capability shared by compiled and natively supplied validators.

    ``validate`` returns the validated (possibly coerced) value or raises
    ``pydantic.ValidationError``.
    """

    def validate(self, value: Any) -> Any: ...


# A schema document is a JSON-Schema-like mapping whose exact dialect is owned
# by the provider. Native providers hand over a pydantic model, a TypeAdapter or
# a Validator instead.
SchemaNode = Union[Mapping[str, Any], Type[BaseModel], TypeAdapter, Validator, None]


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    name: str
    title: str
    description: str
    schema: SchemaNode = None

    def input_schema(self) -> Mapping[str, Any]:
        """Return the externally visible JSON schema for this tool."""
        schema = self.schema
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            return schema.model_json_schema(by_alias=True)
        if isinstance(schema, TypeAdapter):
            return schema.json_schema(by_alias=True)
        if isinstance(schema, Mapping):
            return schema
        return {"type": "object", "properties": {}}


class ProviderBinding(Protocol):
    """A source of tools plus the single function that executes them."""

    name: str

    def list_tools(self) -> Sequence[ToolDescriptor]: ...

    def invoke(self, name: str, args: Mapping[str, Any]) -> Awaitable[Any]: ...
