"""MCP server exposing Windows diagnostic scripts as tools."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from diagbridge import tool_handlers
from diagbridge.catalog import SCRIPT_NAMES, TOOL_REGISTRY
from diagbridge.catalog.base import ToolDescriptor
from diagbridge.decoder import decode_output
from diagbridge.errors import FailureKind, MalformedOutputError, ToolFailure
from diagbridge.interpreters import Interpreter, get_interpreter
from diagbridge.runner import cleanup_processes, run_process
from diagbridge.scripts import DEFAULT_SCRIPTS_DIR, ScriptLibrary
from diagbridge.telemetry import set_span_attributes, trace_span
from diagbridge.tool_handlers import ScriptResult
from diagbridge.tools import build_tools

server = Server("diagbridge")

logger = logging.getLogger("diagbridge")

MIN_TIMEOUT = 1
MAX_TIMEOUT = 3600
DEFAULT_TIMEOUT = int(os.environ.get("DIAGBRIDGE_TIMEOUT", "120"))
if DEFAULT_TIMEOUT < MIN_TIMEOUT or DEFAULT_TIMEOUT > MAX_TIMEOUT:
    raise ValueError(f"DIAGBRIDGE_TIMEOUT must be between {MIN_TIMEOUT} and {MAX_TIMEOUT}")
MAX_STDERR_CHARS = int(os.environ.get("DIAGBRIDGE_MAX_STDERR_CHARS", "4000"))
MAX_RESPONSE_BYTES = int(os.environ.get("DIAGBRIDGE_MAX_RESPONSE_BYTES", "5000000"))
if MAX_RESPONSE_BYTES < 1_000 or MAX_RESPONSE_BYTES > 50_000_000:
    raise ValueError("DIAGBRIDGE_MAX_RESPONSE_BYTES must be between 1000 and 50000000")
SCRIPTS_DIR = Path(os.environ.get("DIAGBRIDGE_SCRIPTS_DIR") or DEFAULT_SCRIPTS_DIR)

INTERPRETER: Interpreter = get_interpreter(
    path=(os.environ.get("DIAGBRIDGE_INTERPRETER_PATH") or "").strip() or None,
    mode=(os.environ.get("DIAGBRIDGE_INVOCATION_MODE") or "").strip() or None,
)
SCRIPTS = ScriptLibrary.load(SCRIPTS_DIR, SCRIPT_NAMES, INTERPRETER.config.script_suffix)


def _configure_logging() -> None:
    level = os.environ.get("DIAGBRIDGE_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _safe_env(interpreter: Interpreter) -> dict[str, str]:
    env = {key: os.environ[key] for key in interpreter.config.safe_env_keys if key in os.environ}
    if "PATH" not in env and "PATH" in os.environ:
        env["PATH"] = os.environ["PATH"]
    return env


def _resolve_timeout(descriptor: ToolDescriptor) -> int:
    """Resolve timeout: tool env > tool default > global."""
    env_key = f"DIAGBRIDGE_{descriptor.name.upper()}_TIMEOUT"
    if env_val := os.environ.get(env_key):
        value = int(env_val)
    elif descriptor.timeout_seconds is not None:
        value = descriptor.timeout_seconds
    else:
        value = DEFAULT_TIMEOUT
    if value < MIN_TIMEOUT or value > MAX_TIMEOUT:
        raise ValueError(f"timeout for {descriptor.name} must be between 1 and 3600")
    return value


def _stderr_tail(value: str, max_chars: int) -> str:
    """Keep the last ``max_chars`` characters, where scripts report the failure."""
    if len(value) <= max_chars:
        return value
    if max_chars <= 0:
        return "... [truncated] ..."
    return "... [truncated] ...\n" + value[-max_chars:]


def _missing_script(descriptor: ToolDescriptor) -> ToolFailure:
    suffix = INTERPRETER.config.script_suffix
    return ToolFailure(
        kind=FailureKind.SPAWN_FAILURE,
        message=f"script '{descriptor.script}' is not available",
        hint=(
            f"Place {descriptor.script}{suffix} in {SCRIPTS.directory} "
            "or set DIAGBRIDGE_SCRIPTS_DIR"
        ),
    )


def _run_script(
    descriptor: ToolDescriptor,
    arguments: Mapping[str, Any],
    timeout_seconds: int,
    request_id: str = "",
) -> ScriptResult:
    """Encode, run, classify and decode one script invocation."""
    with trace_span(
        f"script/{descriptor.script}",
        attributes={
            "diagbridge.tool": descriptor.name,
            "diagbridge.script": descriptor.script,
            "diagbridge.timeout_seconds": timeout_seconds,
            "diagbridge.request_id": request_id,
        },
    ) as span:
        script = SCRIPTS.get(descriptor.script)
        if script is None:
            logger.warning("Script %s unavailable for %s", descriptor.script, descriptor.name)
            return ScriptResult(failure=_missing_script(descriptor))

        command = INTERPRETER.build_command(script, descriptor.script_params(arguments))
        outcome = run_process(command, timeout_seconds, env=_safe_env(INTERPRETER))
        set_span_attributes(
            span,
            {
                "diagbridge.status": outcome.status,
                "diagbridge.exit_code": outcome.exit_code,
                "diagbridge.duration_ms": outcome.duration_ms,
            },
        )
        logger.info(
            "Script %s for %s finished with status: %s",
            script.name,
            descriptor.name,
            outcome.status,
            extra={"request_id": request_id, "script_digest": script.short_digest},
        )

        if outcome.spawn_error is not None:
            return ScriptResult(
                failure=ToolFailure(
                    kind=FailureKind.SPAWN_FAILURE,
                    message=outcome.spawn_error,
                    hint=(
                        "PowerShell interpreter not available. "
                        f"Install: {INTERPRETER.config.install_hint}"
                    ),
                ),
                duration_ms=outcome.duration_ms,
            )
        if outcome.timed_out:
            return ScriptResult(
                failure=ToolFailure(
                    kind=FailureKind.TIMEOUT,
                    message=f"script timed out after {timeout_seconds}s",
                    hint=f"Raise DIAGBRIDGE_{descriptor.name.upper()}_TIMEOUT or narrow the query",
                ),
                duration_ms=outcome.duration_ms,
            )
        if outcome.exit_code != 0:
            stderr = _stderr_tail(outcome.stderr_text().strip(), MAX_STDERR_CHARS)
            return ScriptResult(
                failure=ToolFailure(
                    kind=FailureKind.NONZERO_EXIT,
                    message=f"script exited with code {outcome.exit_code}",
                    detail=stderr or None,
                ),
                duration_ms=outcome.duration_ms,
            )

        try:
            document = decode_output(outcome.stdout, descriptor.required_fields)
        except MalformedOutputError as exc:
            logger.warning("Malformed output from %s: %s", script.name, exc.reason)
            return ScriptResult(failure=exc.to_failure(), duration_ms=outcome.duration_ms)
        return ScriptResult(document=document, duration_ms=outcome.duration_ms)


def _enforce_response_limit(content: list[TextContent], tool_name: str) -> list[TextContent]:
    """Apply circuit-breaker behavior for oversized protocol responses."""
    return tool_handlers.enforce_response_limit(
        content,
        tool_name,
        max_response_bytes=MAX_RESPONSE_BYTES,
        logger=logger,
    )


@server.list_tools()
async def list_tools() -> list[Tool]:
    """Build MCP tool metadata for every catalog entry."""
    return build_tools(TOOL_REGISTRY.values())


def _build_tool_handler_deps() -> tool_handlers.ToolHandlerDeps:
    """Collect orchestration callbacks for protocol-layer dispatch."""
    return tool_handlers.ToolHandlerDeps(
        registry=TOOL_REGISTRY,
        resolve_timeout=_resolve_timeout,
        run_script=_run_script,
    )


async def handle_tool(name: str, arguments: Any) -> list[TextContent]:
    """Dispatch a tool invocation with validation and stable error text.

    Separated from ``call_tool`` so tests can invoke tool logic without the
    MCP decorator.

    Args:
        name: MCP tool name (``get_system_uptime``, ``wmi_query``, etc.).
        arguments: Tool argument payload from the MCP client.
    """
    return await tool_handlers.handle_tool(
        name,
        arguments,
        deps=_build_tool_handler_deps(),
        logger=logger,
    )


# Arguments are coerced by the catalog, not rejected by the SDK.
@server.call_tool(validate_input=False)
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """MCP tool handler -- delegates to ``handle_tool`` with response limit."""
    return _enforce_response_limit(await handle_tool(name, arguments), name)


async def run() -> None:
    """Run the MCP server over stdio until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def _handle_termination(signum: int, _frame: Any) -> None:
    logger.info("Received signal %s, terminating running scripts", signum)
    cleanup_processes()
    sys.exit(128 + signum)


def main() -> None:
    """CLI entry point that reports prerequisites then starts the server."""
    _configure_logging()
    installed, _path = INTERPRETER.check_installed()
    if not installed:
        message = (
            f"Warning: {INTERPRETER.config.command} not found; every tool call will fail. "
            f"Install: {INTERPRETER.config.install_hint}"
        )
        logger.warning(message)
        print(message, file=sys.stderr)
    if SCRIPTS.missing:
        logger.warning(
            "Scripts missing from %s: %s", SCRIPTS.directory, ", ".join(SCRIPTS.missing)
        )
    # Script children run in their own sessions and never see the signal.
    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, _handle_termination)
    asyncio.run(run())


if __name__ == "__main__":
    main()
