# Copyright (c) Microsoft. All rights reserved.

from unittest.mock import MagicMock

import pytest
from opentelemetry import trace

from agent_bridge.observability import (
    OBSERVABILITY_SETTINGS,
    OtelAttr,
    bridge_tracer,
    capture_exception,
    enable_instrumentation,
    get_tracer,
    is_instrumentation_enabled,
)


@pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("false", False)])
def test_is_instrumentation_enabled(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("ENABLE_INSTRUMENTATION", value)

    assert is_instrumentation_enabled() is expected


def test_bridge_tracer_is_noop_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(OBSERVABILITY_SETTINGS, "enable_instrumentation", None)

    assert isinstance(bridge_tracer(), trace.NoOpTracer)


def test_bridge_tracer_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(OBSERVABILITY_SETTINGS, "enable_instrumentation", True)

    assert not isinstance(bridge_tracer(), trace.NoOpTracer)


def test_bridge_tracer_ignores_later_env_changes(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(OBSERVABILITY_SETTINGS, "enable_instrumentation", None)
    monkeypatch.setenv("ENABLE_INSTRUMENTATION", "true")

    assert isinstance(bridge_tracer(), trace.NoOpTracer)


def test_enable_instrumentation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(OBSERVABILITY_SETTINGS, "enable_instrumentation", None)

    enable_instrumentation()

    assert OBSERVABILITY_SETTINGS["enable_instrumentation"] is True
    assert not isinstance(bridge_tracer(), trace.NoOpTracer)


def test_get_tracer_starts_spans() -> None:
    with get_tracer().start_as_current_span("execute_task") as span:
        assert span is not None


def test_capture_exception() -> None:
    span = MagicMock()
    exception = RuntimeError("runner crashed")

    capture_exception(span, exception, timestamp=42)

    span.set_attribute.assert_called_once_with(OtelAttr.ERROR_TYPE, "RuntimeError")
    span.record_exception.assert_called_once_with(exception=exception, timestamp=42)
    span.set_status.assert_called_once_with(status=trace.StatusCode.ERROR, description=repr(exception))
