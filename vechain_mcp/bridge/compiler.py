"""
Compile provider-supplied JSON-Schema-like documents into pydantic validators.

Providers are not trusted to emit one consistent schema dialect, so compilation
is total: a fragment that cannot be interpreted strictly widens to "accept
anything" instead of failing the surrounding document. Constraints are enforced
on a best-effort basis (lengths, bounds, item counts, regex patterns, literal
sets). Objects are always open: fields that the schema does not list are kept
in the validated result.

A node that already is a validator (a ``Validator``, a pydantic model class, or
a ``TypeAdapter``) is used as-is.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainValidator,
    TypeAdapter,
    ValidationError,
    create_model,
)
from pydantic_core import PydanticCustomError

from vechain_mcp.bridge.errors import format_validation_error
from vechain_mcp.bridge.types import SchemaNode, Validator

logger = logging.getLogger(__name__)

# Nodes nested deeper than this compile to accept-all.
MAX_DEPTH = 64

_OPEN_OBJECT = ConfigDict(extra="allow")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _preview(value: Any) -> str:
    try:
        text = json.dumps(value, default=repr)
    except (TypeError, ValueError):
        text = repr(value)
    return text if len(text) <= 60 else text[:57] + "..."


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, int) or float(value).is_integer()


def _number_or_none(value: Any) -> Optional[float]:
    return value if _is_number(value) else None


def _count_or_none(value: Any) -> Optional[int]:
    if _is_integer(value) and value >= 0:
        return int(value)
    return None


def _same_value(left: Any, right: Any) -> bool:
    # JSON keeps booleans and numbers apart; Python does not.
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


# --- leaf checks ----------------------------------------------------------


def _expect(expected: str, check: Callable[[Any], bool]) -> PlainValidator:
    def _validate(value: Any) -> Any:
        if not check(value):
            raise PydanticCustomError(
                f"{expected}_type",
                "expected {expected}, got {received}",
                {"expected": expected, "received": _json_type(value)},
            )
        return value

    return PlainValidator(_validate)


def _require(expected: str, check: Callable[[Any], bool]) -> BeforeValidator:
    def _validate(value: Any) -> Any:
        if not check(value):
            raise PydanticCustomError(
                f"{expected}_type",
                "expected {expected}, got {received}",
                {"expected": expected, "received": _json_type(value)},
            )
        return value

    return BeforeValidator(_validate)


def _require_object(value: Any) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise PydanticCustomError(
            "object_type",
            "expected {expected}, got {received}",
            {"expected": "object", "received": _json_type(value)},
        )
    return dict(value)


def _size_bounds(minimum: Optional[int], maximum: Optional[int], unit: str) -> AfterValidator:
    def _validate(value: Any) -> Any:
        size = len(value)
        if minimum is not None and size < minimum:
            raise PydanticCustomError(
                "too_short",
                "expected at least {limit} {unit}, got {actual}",
                {"limit": minimum, "unit": unit, "actual": size},
            )
        if maximum is not None and size > maximum:
            raise PydanticCustomError(
                "too_long",
                "expected at most {limit} {unit}, got {actual}",
                {"limit": maximum, "unit": unit, "actual": size},
            )
        return value

    return AfterValidator(_validate)


def _numeric_bounds(node: Mapping[str, Any]) -> Optional[AfterValidator]:
    minimum = _number_or_none(node.get("minimum"))
    maximum = _number_or_none(node.get("maximum"))
    exclusive_minimum = _number_or_none(node.get("exclusiveMinimum"))
    exclusive_maximum = _number_or_none(node.get("exclusiveMaximum"))
    checks: List[Tuple[Optional[float], Callable[[Any, float], bool], str]] = [
        (minimum, lambda v, limit: v >= limit, ">="),
        (maximum, lambda v, limit: v <= limit, "<="),
        (exclusive_minimum, lambda v, limit: v > limit, ">"),
        (exclusive_maximum, lambda v, limit: v < limit, "<"),
    ]
    active = [(limit, test, op) for limit, test, op in checks if limit is not None]
    if not active:
        return None

    def _validate(value: Any) -> Any:
        for limit, test, op in active:
            if not test(value, limit):
                raise PydanticCustomError(
                    "number_out_of_range",
                    "expected number {op} {limit}, got {actual}",
                    {"op": op, "limit": limit, "actual": value},
                )
        return value

    return AfterValidator(_validate)


def _pattern_check(raw_pattern: Any) -> Optional[AfterValidator]:
    if not isinstance(raw_pattern, str):
        return None
    try:
        compiled = re.compile(raw_pattern)
    except (re.error, OverflowError, RecursionError, ValueError):
        logger.debug("Ignoring uncompilable pattern %r", raw_pattern)
        return None

    def _validate(value: str) -> str:
        if compiled.search(value) is None:
            raise PydanticCustomError(
                "string_pattern_mismatch",
                "expected string matching {pattern}",
                {"pattern": raw_pattern},
            )
        return value

    return AfterValidator(_validate)


def _one_of_values(values: Sequence[Any]) -> PlainValidator:
    expected = ", ".join(_preview(value) for value in values)

    def _validate(value: Any) -> Any:
        for candidate in values:
            if _same_value(value, candidate):
                return value
        raise PydanticCustomError(
            "literal_error",
            "expected one of {expected}, got {received}",
            {"expected": expected, "received": _preview(value)},
        )

    return PlainValidator(_validate)


def _delegate(validate: Callable[[Any], Any]) -> PlainValidator:
    def _validate(value: Any) -> Any:
        try:
            return validate(value)
        except ValidationError as exc:
            raise PydanticCustomError("nested_invalid", "{detail}", {"detail": format_validation_error(exc)})

    return PlainValidator(_validate)


def _first_match(members: Sequence[Any]) -> PlainValidator:
    adapters = [TypeAdapter(member) for member in members]

    def _validate(value: Any) -> Any:
        for adapter in adapters:
            try:
                return adapter.validate_python(value)
            except ValidationError:
                continue
        raise PydanticCustomError(
            "union_mismatch",
            "value matched none of the allowed variants, got {received}",
            {"received": _json_type(value)},
        )

    return PlainValidator(_validate)


def _model_to_dict(instance: BaseModel) -> Dict[str, Any]:
    fields = type(instance).model_fields
    data = {
        (info.alias or name): getattr(instance, name)
        for name, info in fields.items()
        if name in instance.model_fields_set
    }
    data.update(instance.model_extra or {})
    return data


def _dump_model(instance: BaseModel) -> Dict[str, Any]:
    return instance.model_dump()


AcceptAll = Any
String = Annotated[Any, _expect("string", lambda v: isinstance(v, str))]
Number = Annotated[Any, _expect("number", _is_number)]
Integer = Annotated[Any, _expect("integer", _is_integer)]
Boolean = Annotated[Any, _expect("boolean", lambda v: isinstance(v, bool))]
Null = Annotated[Any, _expect("null", lambda v: v is None)]
FreeFormObject = Annotated[Dict[str, Any], BeforeValidator(_require_object)]


# --- node compilation -----------------------------------------------------


def _native_annotation(node: Any) -> Optional[Any]:
    if isinstance(node, type) and issubclass(node, BaseModel):
        return Annotated[node, AfterValidator(_dump_model)]
    if isinstance(node, TypeAdapter):
        return Annotated[Any, _delegate(node.validate_python)]
    if not isinstance(node, Mapping) and isinstance(node, Validator):
        return Annotated[Any, _delegate(node.validate)]
    return None


def _is_free_form_object(node: Any) -> bool:
    if not isinstance(node, Mapping):
        return False
    properties = node.get("properties")
    return (
        node.get("type") == "object"
        and node.get("additionalProperties") is True
        and (not properties or (isinstance(properties, Mapping) and len(properties) == 0))
    )


def _compile_string(node: Mapping[str, Any]) -> Any:
    metadata: List[Any] = []
    min_length = _count_or_none(node.get("minLength"))
    max_length = _count_or_none(node.get("maxLength"))
    if min_length is not None or max_length is not None:
        metadata.append(_size_bounds(min_length, max_length, "characters"))
    pattern = _pattern_check(node.get("pattern"))
    if pattern is not None:
        metadata.append(pattern)
    if not metadata:
        return String
    return Annotated[(String, *metadata)]


def _compile_number(node: Mapping[str, Any], *, integer: bool) -> Any:
    base = Integer if integer else Number
    bounds = _numeric_bounds(node)
    if bounds is None:
        return base
    return Annotated[base, bounds]


def _compile_array(node: Mapping[str, Any], depth: int) -> Any:
    items = node.get("items")
    item_type = _compile_child(items, depth + 1) if isinstance(items, Mapping) else AcceptAll
    metadata: List[Any] = [_require("array", lambda v: isinstance(v, (list, tuple)))]
    min_items = _count_or_none(node.get("minItems"))
    max_items = _count_or_none(node.get("maxItems"))
    if min_items is not None or max_items is not None:
        metadata.append(_size_bounds(min_items, max_items, "items"))
    return Annotated[(List[item_type], *metadata)]


def _compile_object(node: Mapping[str, Any], depth: int) -> Any:
    properties = node.get("properties")
    if not isinstance(properties, Mapping):
        properties = {}
    raw_required = node.get("required")
    required = {key for key in raw_required if isinstance(key, str)} if isinstance(raw_required, list) else set()

    fields: Dict[str, Any] = {}
    for index, (key, child) in enumerate(properties.items()):
        if not isinstance(key, str):
            logger.debug("Skipping non-string property name %r", key)
            continue
        if _is_free_form_object(child):
            annotation = FreeFormObject
        else:
            annotation = _compile_child(child, depth + 1)
        if key in required:
            fields[f"field_{index}"] = (annotation, Field(alias=key))
        else:
            fields[f"field_{index}"] = (annotation, Field(default=None, alias=key))

    model = create_model("ToolArguments", __config__=_OPEN_OBJECT, **fields)
    return Annotated[
        model,
        BeforeValidator(_require_object),
        AfterValidator(_model_to_dict),
    ]


def _compile_union(members: Sequence[Any], depth: int) -> Any:
    compiled = [_compile_child(member, depth + 1) for member in members]
    if any(member is AcceptAll for member in compiled):
        return AcceptAll
    return Annotated[Any, _first_match(compiled)]


def _compile_child(node: Any, depth: int) -> Any:
    """Compile a nested fragment; a fragment that blows up accepts any value on its own."""
    try:
        return _compile_node(node, depth)
    except Exception:
        logger.debug("Schema fragment could not be compiled; accepting any value", exc_info=True)
        return AcceptAll


def _compile_node(node: Any, depth: int) -> Any:
    if depth > MAX_DEPTH:
        logger.debug("Schema nesting exceeds %d levels; accepting any value", MAX_DEPTH)
        return AcceptAll

    native = _native_annotation(node)
    if native is not None:
        return native
    if not isinstance(node, Mapping):
        return AcceptAll

    enum = node.get("enum")
    if isinstance(enum, list) and enum:
        return Annotated[Any, _one_of_values(list(enum))]
    if "const" in node:
        return Annotated[Any, _one_of_values([node["const"]])]

    kind = node.get("type")
    if isinstance(kind, list):
        kinds = [item for item in kind if isinstance(item, str)]
        if not kinds:
            return AcceptAll
        if len(kinds) == 1:
            kind = kinds[0]
        else:
            variants = [{**node, "type": item} for item in kinds]
            return _compile_union(variants, depth)

    if kind is None:
        for keyword in ("anyOf", "oneOf"):
            members = node.get(keyword)
            if isinstance(members, list) and members and all(isinstance(m, Mapping) for m in members):
                return _compile_union(members, depth)

    if kind == "string":
        return _compile_string(node)
    if kind == "number":
        return _compile_number(node, integer=False)
    if kind == "integer":
        return _compile_number(node, integer=True)
    if kind == "boolean":
        return Boolean
    if kind == "null":
        return Null
    if kind == "array":
        return _compile_array(node, depth)
    if kind == "object":
        return _compile_object(node, depth)
    if isinstance(node.get("properties"), Mapping):
        return _compile_object(node, depth)
    if kind is not None:
        logger.debug("Unrecognized schema type %r; accepting any value", kind)
    return AcceptAll


# --- public API -----------------------------------------------------------


class SchemaValidator:
    """Validator compiled from a schema document."""

    __slots__ = ("_adapter",)

    def __init__(self, annotation: Any) -> None:
        self._adapter = TypeAdapter(annotation)

    def validate(self, value: Any) -> Any:
        return self._adapter.validate_python(value)


class ModelValidator:
    """Validator backed by a provider-supplied pydantic model."""

    __slots__ = ("model",)

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model

    def validate(self, value: Any) -> Any:
        return self.model.model_validate(value).model_dump()


class AdapterValidator:
    """Validator backed by a provider-supplied ``TypeAdapter``."""

    __slots__ = ("adapter",)

    def __init__(self, adapter: TypeAdapter) -> None:
        self.adapter = adapter

    def validate(self, value: Any) -> Any:
        return self.adapter.validate_python(value)


def accept_any_object() -> SchemaValidator:
    return SchemaValidator(_compile_object({}, 0))


def _as_validator(node: Any) -> Optional[Validator]:
    if isinstance(node, type) and issubclass(node, BaseModel):
        return ModelValidator(node)
    if isinstance(node, TypeAdapter):
        return AdapterValidator(node)
    if not isinstance(node, Mapping) and isinstance(node, Validator):
        return node
    return None


def compile_schema(node: SchemaNode) -> Validator:
    """
    Compile any schema node into a validator.

    Never raises for any input; fragments that cannot be compiled accept any
    value.
    """
    native = _as_validator(node)
    if native is not None:
        return native
    try:
        return SchemaValidator(_compile_node(node, 0))
    except Exception:
        logger.debug("Schema could not be compiled; accepting any value", exc_info=True)
        return SchemaValidator(AcceptAll)


def compile_root(node: SchemaNode) -> Validator:
    """
    Compile a tool's input schema.

    The result always validates an object of named arguments. A root that is
    not object-shaped, or has no usable shape at all, accepts any object.
    """
    native = _as_validator(node)
    if native is not None:
        return native
    if isinstance(node, Mapping) and (
        node.get("type") == "object" or isinstance(node.get("properties"), Mapping)
    ):
        try:
            return SchemaValidator(_compile_object(node, 0))
        except Exception:
            logger.debug("Root schema could not be compiled; accepting any object", exc_info=True)
            return accept_any_object()
    logger.debug("Root schema is not object-shaped; accepting any object")
    return accept_any_object()
