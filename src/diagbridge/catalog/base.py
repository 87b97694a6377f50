"""Tool descriptors, parameter schemas and argument validation."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mcp.types import TextContent

from diagbridge.encoding import LIST_DELIMITER, ParamValue
from diagbridge.errors import FailureKind, ToolFailure

logger = logging.getLogger("diagbridge")


class ParamKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING_LIST = "string_list"
    NUMBER_LIST = "number_list"

    @property
    def is_list(self) -> bool:
        return self in (ParamKind.STRING_LIST, ParamKind.NUMBER_LIST)


@dataclass(frozen=True)
class ParameterDef:
    """One accepted tool argument and the script flag it maps to."""

    kind: ParamKind
    description: str
    flag: str | None = None  # None: consumed by build_params, not passed through
    default: Any = None
    required: bool = False
    minimum: float | None = None
    maximum: float | None = None


@dataclass(frozen=True)
class ContentBlock:
    kind: str
    text: str


@dataclass(frozen=True)
class ToolResponse:
    """Ordered presentation blocks returned to the caller."""

    content: tuple[ContentBlock, ...]

    @classmethod
    def text(cls, *texts: str) -> ToolResponse:
        return cls(tuple(ContentBlock("text", text) for text in texts))

    def to_content(self) -> list[TextContent]:
        return [TextContent(type="text", text=block.text) for block in self.content]


Arguments = Mapping[str, Any]
Params = list[tuple[str, ParamValue]]
Formatter = Callable[[Arguments, dict[str, Any]], ToolResponse]
ParamBuilder = Callable[[Arguments], Params]


@dataclass(frozen=True)
class ToolDescriptor:
    """A catalog entry.

    The handler for a tool is the pair ``build_params`` (validated arguments
    to ordered script flags) and ``formatter`` (decoded document to
    response). Without a ``build_params`` hook, every parameter with a flag
    is passed through in declaration order, followed by ``fixed_params``.
    """

    name: str
    description: str
    script: str
    formatter: Formatter
    parameters: tuple[tuple[str, ParameterDef], ...] = ()
    fixed_params: tuple[tuple[str, ParamValue], ...] = ()
    build_params: ParamBuilder | None = None
    required_fields: tuple[str, ...] = ()
    timeout_seconds: int | None = None

    def script_params(self, arguments: Arguments) -> Params:
        if self.build_params is not None:
            return self.build_params(arguments)
        params: Params = [
            (param.flag, arguments.get(name))
            for name, param in self.parameters
            if param.flag is not None
        ]
        params.extend(self.fixed_params)
        return params


# =============================================================================
# Argument coercion
# =============================================================================

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


class _Invalid(Exception):
    """Value cannot be coerced to the declared kind."""


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise _Invalid


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise _Invalid
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise _Invalid from None
    else:
        raise _Invalid
    if isinstance(number, float):
        if not math.isfinite(number):
            raise _Invalid
        if number.is_integer():
            return int(number)
    return number


def _to_integer(value: Any) -> int:
    number = _to_number(value)
    if isinstance(number, float):
        raise _Invalid
    return number


def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise _Invalid


def _to_list(value: Any, convert: Callable[[Any], Any]) -> tuple[Any, ...]:
    if isinstance(value, str):
        items: Iterable[Any] = [part.strip() for part in value.split(LIST_DELIMITER)]
        items = [part for part in items if part]
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    converted = []
    for item in items:
        try:
            converted.append(convert(item))
        except _Invalid:
            logger.debug("Dropping uncoercible list element %r", item)
    return tuple(converted)


def _clamp(value: int | float, param: ParameterDef) -> int | float:
    if param.minimum is not None and value < param.minimum:
        value = type(value)(param.minimum)
    if param.maximum is not None and value > param.maximum:
        value = type(value)(param.maximum)
    return value


def coerce_value(value: Any, param: ParameterDef) -> Any:
    """Coerce a raw argument to the parameter's kind.

    Raises:
        ValueError: If the value cannot be represented as that kind.
    """
    try:
        if param.kind is ParamKind.BOOLEAN:
            return _to_bool(value)
        if param.kind is ParamKind.NUMBER:
            return _clamp(_to_number(value), param)
        if param.kind is ParamKind.INTEGER:
            return _clamp(_to_integer(value), param)
        if param.kind is ParamKind.STRING:
            return _to_string(value)
        if param.kind is ParamKind.STRING_LIST:
            return _to_list(value, _to_string)
        return _to_list(value, _to_number)
    except _Invalid:
        raise ValueError(f"expected {param.kind.value}, got {type(value).__name__}") from None


def validate_arguments(
    descriptor: ToolDescriptor,
    arguments: Any,
) -> dict[str, Any] | ToolFailure:
    """Return the validated argument map for ``descriptor``.

    Malformed input degrades to defaults instead of rejecting the call; only
    a required parameter that is still missing yields a failure.
    """
    if not isinstance(arguments, Mapping):
        if arguments is not None:
            logger.warning(
                "Arguments for %s are %s, not an object; using defaults",
                descriptor.name,
                type(arguments).__name__,
            )
        arguments = {}

    declared = {name for name, _param in descriptor.parameters}
    unknown = sorted(str(key) for key in arguments if key not in declared)
    if unknown:
        logger.debug("Ignoring unknown arguments for %s: %s", descriptor.name, unknown)

    validated: dict[str, Any] = {}
    for name, param in descriptor.parameters:
        raw = arguments.get(name)
        value = param.default
        if raw is not None:
            try:
                value = coerce_value(raw, param)
            except ValueError as exc:
                logger.warning(
                    "Argument %s for %s ignored (%s); using default", name, descriptor.name, exc
                )
        if param.kind is ParamKind.STRING and param.required and isinstance(value, str):
            value = value.strip() or None
        if value is None and param.required:
            return ToolFailure(
                kind=FailureKind.INVALID_ARGUMENTS,
                message=f"missing required argument '{name}'",
                hint=param.description,
            )
        validated[name] = value
    return validated


# =============================================================================
# Markdown helpers shared by formatters
# =============================================================================


def as_list(value: Any) -> list[Any]:
    """Normalize a JSON field that PowerShell may emit as null, object or array."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def bullets(items: Iterable[str], empty: str) -> str:
    lines = [f"- {item}" for item in items]
    return "\n".join(lines) if lines else empty


def clip(text: Any, limit: int = 200) -> str:
    value = "" if text is None else str(text)
    if len(value) <= limit:
        return value
    return value[:limit] + "..."


__all__ = [
    "ContentBlock",
    "ParamKind",
    "ParameterDef",
    "ToolDescriptor",
    "ToolResponse",
    "as_list",
    "bullets",
    "clip",
    "coerce_value",
    "validate_arguments",
]
