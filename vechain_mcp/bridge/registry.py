"""Tool name to validator registry and argument resolution."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import ValidationError

from vechain_mcp.bridge.compiler import accept_any_object, compile_root
from vechain_mcp.bridge.errors import ToolInputError
from vechain_mcp.bridge.types import ToolDescriptor, Validator

logger = logging.getLogger(__name__)

ValidatorRegistry = Mapping[str, Validator]


def build_registry(descriptors: Iterable[ToolDescriptor]) -> ValidatorRegistry:
    """
    Compile every descriptor's schema once and index the result by tool name.

    A tool whose schema blows up during compilation falls back to accepting any
    object; the rest of the registry is unaffected.
    """
    validators: Dict[str, Validator] = {}
    for descriptor in descriptors:
        try:
            validators[descriptor.name] = compile_root(descriptor.schema)
        except Exception:
            logger.warning(
                "tool=%s schema compilation failed; accepting any arguments",
                descriptor.name,
                exc_info=True,
                extra={"tool": descriptor.name},
            )
            validators[descriptor.name] = accept_any_object()
    return MappingProxyType(validators)


def resolve(registry: ValidatorRegistry, name: str, raw_args: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Validate raw call arguments for ``name``.

    A tool without a registered validator is treated as taking no required
    arguments and resolves to ``{}``.

    Raises:
        ToolInputError: listing every failing field path and reason.
    """
    validator = registry.get(name)
    if validator is None:
        return {}
    try:
        return validator.validate(raw_args if raw_args is not None else {})
    except ValidationError as exc:
        raise ToolInputError.from_validation_error(name, exc) from exc
