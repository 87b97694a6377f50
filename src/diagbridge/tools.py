"""MCP tool schema generation for the diagnostic catalog.

Each catalog ``ToolDescriptor`` is rendered as an MCP ``Tool`` whose
``inputSchema`` is a JSON Schema object built from its parameter table.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from mcp.types import Tool

from diagbridge.catalog.base import ParameterDef, ParamKind, ToolDescriptor

_SCHEMA_TYPES: dict[ParamKind, dict[str, Any]] = {
    ParamKind.STRING: {"type": "string"},
    ParamKind.NUMBER: {"type": "number"},
    ParamKind.INTEGER: {"type": "integer"},
    ParamKind.BOOLEAN: {"type": "boolean"},
    ParamKind.STRING_LIST: {"type": "array", "items": {"type": "string"}},
    ParamKind.NUMBER_LIST: {"type": "array", "items": {"type": "number"}},
}


def _param_to_schema(param: ParameterDef) -> dict[str, Any]:
    """Convert a ParameterDef to a JSON Schema dict."""
    schema: dict[str, Any] = dict(_SCHEMA_TYPES[param.kind])

    if param.description:
        schema["description"] = param.description
    if param.default is not None:
        default = param.default
        if isinstance(default, tuple):
            default = list(default)
        schema["default"] = default
    if param.minimum is not None:
        schema["minimum"] = param.minimum
    if param.maximum is not None:
        schema["maximum"] = param.maximum

    return schema


def build_input_schema(descriptor: ToolDescriptor) -> dict[str, Any]:
    """Convert a ToolDescriptor to an MCP inputSchema dict."""
    properties: dict[str, Any] = {
        name: _param_to_schema(param) for name, param in descriptor.parameters
    }
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }

    required = [name for name, param in descriptor.parameters if param.required]
    if required:
        schema["required"] = required

    return schema


def build_tools(descriptors: Iterable[ToolDescriptor]) -> list[Tool]:
    """Build MCP Tool objects in catalog order."""
    return [
        Tool(
            name=descriptor.name,
            description=descriptor.description,
            inputSchema=build_input_schema(descriptor),
        )
        for descriptor in descriptors
    ]


__all__ = ["build_input_schema", "build_tools"]
