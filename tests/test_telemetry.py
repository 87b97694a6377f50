"""Tests for diagbridge.telemetry module."""

import importlib
import uuid
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from diagbridge.telemetry import (
    _get_tracer,
    generate_request_id,
    set_span_attributes,
    trace_span,
)


class TestGenerateRequestId:
    def test_returns_valid_uuid4(self) -> None:
        rid = generate_request_id()
        parsed = uuid.UUID(rid, version=4)
        assert str(parsed) == rid

    def test_unique_per_call(self) -> None:
        ids = {generate_request_id() for _ in range(100)}
        assert len(ids) == 100


class TestGetTracer:
    def test_returns_none_when_otel_missing(self) -> None:
        with patch("diagbridge.telemetry._HAS_OTEL", False):
            assert _get_tracer() is None

    def test_returns_tracer_when_otel_available(self) -> None:
        mock_tracer = MagicMock()
        with (
            patch("diagbridge.telemetry._HAS_OTEL", True),
            patch("diagbridge.telemetry.trace") as mock_trace,
        ):
            mock_trace.get_tracer.return_value = mock_tracer
            assert _get_tracer() is mock_tracer
            mock_trace.get_tracer.assert_called_once_with("diagbridge")

    def test_handles_broken_install(self, monkeypatch: Any) -> None:
        telemetry = importlib.import_module("diagbridge.telemetry")
        original_import_module = importlib.import_module

        with monkeypatch.context() as patch_context:

            def broken_import(name: str, package: str | None = None) -> Any:
                if name == "opentelemetry.trace":
                    raise AttributeError("broken opentelemetry install")
                return original_import_module(name, package)

            patch_context.setattr(importlib, "import_module", broken_import)
            reloaded = importlib.reload(telemetry)

        assert reloaded._HAS_OTEL is False
        assert reloaded._get_tracer() is None
        importlib.reload(telemetry)


class TestTraceSpan:
    def test_yields_none_when_no_otel(self) -> None:
        with patch("diagbridge.telemetry._HAS_OTEL", False), trace_span("test") as span:
            assert span is None

    def test_creates_span_when_otel_available(self) -> None:
        mock_span = MagicMock()
        mock_tracer = MagicMock()
        mock_context = mock_tracer.start_as_current_span.return_value
        mock_context.__enter__.return_value = mock_span
        mock_context.__exit__.return_value = None

        with (
            patch("diagbridge.telemetry._get_tracer", return_value=mock_tracer),
            trace_span("test", attributes={"key": "val"}) as span,
        ):
            assert span is mock_span
        mock_tracer.start_as_current_span.assert_called_once_with(
            "test", attributes={"key": "val"}
        )
        mock_context.__exit__.assert_called_once()

    def test_span_start_failure_yields_none(self) -> None:
        mock_tracer = MagicMock()
        mock_tracer.start_as_current_span.side_effect = RuntimeError("otel broken")

        with (
            patch("diagbridge.telemetry._get_tracer", return_value=mock_tracer),
            trace_span("test") as span,
        ):
            assert span is None

    def test_span_enter_failure_yields_none(self) -> None:
        mock_tracer = MagicMock()
        mock_context = mock_tracer.start_as_current_span.return_value
        mock_context.__enter__.side_effect = RuntimeError("sdk broken")

        with (
            patch("diagbridge.telemetry._get_tracer", return_value=mock_tracer),
            trace_span("test") as span,
        ):
            assert span is None

    def test_span_exit_failure_is_swallowed(self) -> None:
        mock_tracer = MagicMock()
        mock_context = mock_tracer.start_as_current_span.return_value
        mock_context.__exit__.side_effect = RuntimeError("exporter broken")

        with (
            patch("diagbridge.telemetry._get_tracer", return_value=mock_tracer),
            trace_span("test") as span,
        ):
            assert span is mock_context.__enter__.return_value

        mock_context.__exit__.assert_called_once_with(None, None, None)

    def test_exit_failure_does_not_mask_block_exception(self) -> None:
        mock_tracer = MagicMock()
        mock_context = mock_tracer.start_as_current_span.return_value
        mock_context.__exit__.side_effect = RuntimeError("exporter broken")

        with (
            patch("diagbridge.telemetry._get_tracer", return_value=mock_tracer),
            pytest.raises(KeyError),
            trace_span("test"),
        ):
            raise KeyError("boom")

    def test_exceptions_propagate_through_span(self) -> None:
        mock_tracer = MagicMock()
        mock_context = mock_tracer.start_as_current_span.return_value
        mock_context.__exit__.return_value = None

        with (
            patch("diagbridge.telemetry._get_tracer", return_value=mock_tracer),
            pytest.raises(KeyError),
            trace_span("test"),
        ):
            raise KeyError("boom")

        exc_type = mock_context.__exit__.call_args.args[0]
        assert exc_type is KeyError


class TestSetSpanAttributes:
    def test_none_span_is_noop(self) -> None:
        set_span_attributes(None, {"a": 1})

    def test_skips_none_values(self) -> None:
        span = MagicMock()

        set_span_attributes(span, {"a": 1, "b": None})

        span.set_attribute.assert_called_once_with("a", 1)

    def test_swallows_attribute_errors(self) -> None:
        span = MagicMock()
        span.set_attribute.side_effect = TypeError("bad value")

        set_span_attributes(span, {"a": object()})
