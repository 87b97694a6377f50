from types import MappingProxyType

from . import diagnostics, drivers, events, hardware, network, processes, system_info, wmi
from . import windows_registry
from .base import (
    ParamKind,
    ParameterDef,
    ToolDescriptor,
    ToolResponse,
    coerce_value,
    validate_arguments,
)

_MODULES = (
    diagnostics,
    windows_registry,
    processes,
    hardware,
    events,
    drivers,
    network,
    wmi,
    system_info,
)


def _build_registry(descriptors) -> dict[str, ToolDescriptor]:
    registry: dict[str, ToolDescriptor] = {}
    for descriptor in descriptors:
        if descriptor.name in registry:
            raise ValueError(f"Duplicate tool name: {descriptor.name}")
        registry[descriptor.name] = descriptor
    return registry


TOOL_REGISTRY = MappingProxyType(
    _build_registry(tool for module in _MODULES for tool in module.TOOLS)
)

SCRIPT_NAMES: tuple[str, ...] = tuple(dict.fromkeys(module.SCRIPT for module in _MODULES))


def get_tool(name: str) -> ToolDescriptor | None:
    """Look up a tool by name; None if it is not in the catalog."""
    return TOOL_REGISTRY.get(name)


def list_tool_names() -> list[str]:
    """List tool names in catalog order."""
    return list(TOOL_REGISTRY)


__all__ = [
    "SCRIPT_NAMES",
    "TOOL_REGISTRY",
    "ParamKind",
    "ParameterDef",
    "ToolDescriptor",
    "ToolResponse",
    "coerce_value",
    "get_tool",
    "list_tool_names",
    "validate_arguments",
]
