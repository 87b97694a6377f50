"""Lightweight OpenTelemetry wrapper with graceful no-op fallback."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from importlib import import_module
from typing import Any

logger = logging.getLogger("diagbridge.telemetry")

trace: Any | None = None
try:
    trace = import_module("opentelemetry.trace")
    _HAS_OTEL = True
except Exception:
    _HAS_OTEL = False

_TRACER_NAME = "diagbridge"


def _get_tracer() -> Any:
    """Return OTel tracer or None when not installed."""
    if _HAS_OTEL and trace is not None:
        return trace.get_tracer(_TRACER_NAME)
    return None


def generate_request_id() -> str:
    """Generate a UUID4 request ID for correlating tool calls."""
    return str(uuid.uuid4())


def set_span_attributes(span: Any, attributes: dict[str, Any]) -> None:
    """Record attributes on a live span; no-op for the None span."""
    if span is None:
        return
    for key, value in attributes.items():
        if value is None:
            continue
        try:
            span.set_attribute(key, value)
        except Exception as exc:
            logger.debug("Could not set span attribute '%s': %s", key, exc)


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Any, None, None]:
    """Context manager that creates an OTel span or no-ops.

    Exceptions raised inside the block are recorded on the span by the SDK
    and re-raised unchanged.

    Args:
        name: Span name (e.g., "handle_tool/get_system_uptime")
        attributes: Initial span attributes

    Yields:
        The span object (or None if OTel not installed)
    """
    try:
        tracer = _get_tracer()
    except Exception as exc:
        logger.debug("OpenTelemetry unavailable for span '%s': %s", name, exc)
        tracer = None

    if tracer is None:
        yield None
        return

    try:
        span_context = tracer.start_as_current_span(name, attributes=attributes or {})
        span = span_context.__enter__()
    except Exception as exc:
        logger.debug("OpenTelemetry unavailable for span '%s': %s", name, exc)
        yield None
        return

    try:
        yield span
    except BaseException as inner_exc:
        try:
            span_context.__exit__(type(inner_exc), inner_exc, inner_exc.__traceback__)
        except Exception as exit_exc:
            logger.debug("Could not close span '%s': %s", name, exit_exc)
        raise
    else:
        try:
            span_context.__exit__(None, None, None)
        except Exception as exit_exc:
            logger.debug("Could not close span '%s': %s", name, exit_exc)
