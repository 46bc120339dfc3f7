"""Tool-schema bridge: schema compilation, validation, aggregation, dispatch."""

from .aggregator import ToolAggregator
from .compiler import compile_root, compile_schema
from .dispatcher import Dispatcher, error_envelope, text_envelope
from .errors import DuplicateToolError, ToolInputError
from .registry import ValidatorRegistry, build_registry, resolve
from .types import ProviderBinding, SchemaNode, ToolDescriptor, Validator

__all__ = [
    "ToolAggregator",
    "compile_root",
    "compile_schema",
    "Dispatcher",
    "error_envelope",
    "text_envelope",
    "DuplicateToolError",
    "ToolInputError",
    "ValidatorRegistry",
    "build_registry",
    "resolve",
    "ProviderBinding",
    "SchemaNode",
    "ToolDescriptor",
    "Validator",
]
