"""MCP protocol-layer tool dispatch for diagbridge.server."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from mcp.types import TextContent

from diagbridge.catalog.base import ToolDescriptor, validate_arguments
from diagbridge.errors import FailureKind, ToolFailure
from diagbridge.telemetry import generate_request_id, set_span_attributes, trace_span


@dataclass(frozen=True)
class ScriptResult:
    """Outcome of one script run: a decoded document or a failure, never both."""

    document: dict[str, Any] | None = None
    failure: ToolFailure | None = None
    duration_ms: int = 0


RunScriptFn = Callable[[ToolDescriptor, Mapping[str, Any], int, str], ScriptResult]


@dataclass(frozen=True)
class ToolHandlerDeps:
    """Protocol-facing dependencies from the orchestration layer."""

    registry: Mapping[str, ToolDescriptor]
    resolve_timeout: Callable[[ToolDescriptor], int]
    run_script: RunScriptFn


def text_content(text: str) -> list[TextContent]:
    """Wrap a single text block in the MCP transport format."""
    return [TextContent(type="text", text=text)]


def enforce_response_limit(
    content: list[TextContent],
    tool_name: str,
    *,
    max_response_bytes: int,
    logger: logging.Logger,
) -> list[TextContent]:
    """Replace oversized MCP responses with a compact error message."""
    serialized = json.dumps(
        [{"type": item.type, "text": item.text} for item in content],
        ensure_ascii=True,
    )
    total_bytes = len(serialized)
    if total_bytes <= max_response_bytes:
        return content

    logger.warning(
        "Response payload exceeded limit for %s: %d bytes (max %d)",
        tool_name,
        total_bytes,
        max_response_bytes,
    )
    return text_content(
        f"Error executing {tool_name[:200]}: response payload too large "
        f"({total_bytes} bytes, max {max_response_bytes}). "
        "Narrow the query or lower the result limits."
    )


async def handle_tool(
    name: str,
    arguments: Any,
    *,
    deps: ToolHandlerDeps,
    logger: logging.Logger,
) -> list[TextContent]:
    """Dispatch one tool call; every failure is returned as text, never raised."""
    request_id = generate_request_id()
    try:
        with trace_span(
            f"handle_tool/{name}",
            attributes={
                "diagbridge.tool": name,
                "diagbridge.request_id": request_id,
            },
        ) as span:
            descriptor = deps.registry.get(name)
            if descriptor is None:
                logger.warning("Unknown tool requested: %s", name)
                failure = ToolFailure(FailureKind.UNKNOWN_TOOL, f"Unknown tool: {name}")
                return text_content(failure.render(name))

            validated = validate_arguments(descriptor, arguments)
            if isinstance(validated, ToolFailure):
                logger.warning("Rejected call to %s: %s", name, validated.message)
                set_span_attributes(span, {"diagbridge.failure": validated.kind.value})
                return text_content(validated.render(name))

            timeout_seconds = deps.resolve_timeout(descriptor)
            loop = asyncio.get_running_loop()
            try:
                result = await loop.run_in_executor(
                    None,
                    deps.run_script,
                    descriptor,
                    validated,
                    timeout_seconds,
                    request_id,
                )
            except asyncio.CancelledError:
                logger.info("Call to %s cancelled", name, extra={"request_id": request_id})
                return text_content(f"Execution of {name} was cancelled")

            set_span_attributes(
                span,
                {
                    "diagbridge.duration_ms": result.duration_ms,
                    "diagbridge.failure": result.failure.kind.value if result.failure else None,
                },
            )
            if result.failure is not None:
                return text_content(result.failure.render(name))
            return descriptor.formatter(validated, result.document or {}).to_content()
    except ValueError as exc:
        logger.warning("Validation error in %s: %s", name, exc)
        return text_content(ToolFailure(FailureKind.INTERNAL_ERROR, str(exc)).render(name))
    except Exception as exc:
        logger.exception("Unhandled error in %s", name)
        return text_content(ToolFailure(FailureKind.INTERNAL_ERROR, str(exc)).render(name))
