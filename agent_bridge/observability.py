# Copyright (c) Microsoft. All rights reserved.

from typing import TYPE_CHECKING, Any, Final, TypedDict

from opentelemetry import trace

from . import __version__ as version_info
from ._settings import load_settings

if TYPE_CHECKING:  # pragma: no cover
    from opentelemetry.trace import Tracer

__all__ = [
    "OBSERVABILITY_SETTINGS",
    "OtelAttr",
    "ObservabilitySettings",
    "bridge_tracer",
    "capture_exception",
    "enable_instrumentation",
    "get_tracer",
    "is_instrumentation_enabled",
]


class OtelAttr:
    """Span attribute names used by the agent bridge."""

    TASK_ID: Final[str] = "a2a.task.id"
    CONTEXT_ID: Final[str] = "a2a.context.id"
    TASK_STATE: Final[str] = "a2a.task.state"
    PENDING_CALL_COUNT: Final[str] = "agent_bridge.input_required.pending_call_count"
    ERROR_TYPE: Final[str] = "error.type"


class ObservabilitySettings(TypedDict, total=False):
    """Observability settings, read from the ``ENABLE_INSTRUMENTATION`` environment variable."""

    enable_instrumentation: bool | None


def is_instrumentation_enabled(env_file_path: str | None = None) -> bool:
    """Whether spans should be emitted for bridge operations."""
    settings = load_settings(ObservabilitySettings, env_file_path=env_file_path)
    return bool(settings["enable_instrumentation"])


def get_tracer(
    instrumenting_module_name: str = "agent_bridge",
    instrumenting_library_version: str = version_info,
    schema_url: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> "trace.Tracer":
    """Returns a Tracer for use by the given instrumentation library.

    This function is a convenience wrapper for trace.get_tracer() that defaults the
    instrumenting library to the agent bridge and its version.
    """
    return trace.get_tracer(
        instrumenting_module_name=instrumenting_module_name,
        instrumenting_library_version=instrumenting_library_version,
        schema_url=schema_url,
        attributes=attributes,
    )


OBSERVABILITY_SETTINGS: ObservabilitySettings = load_settings(ObservabilitySettings)


def enable_instrumentation() -> None:
    """Enable spans for bridge operations, regardless of the ``ENABLE_INSTRUMENTATION`` environment variable.

    This method does not configure exporters or providers.
    It only updates the global settings read by :func:`bridge_tracer`.
    """
    OBSERVABILITY_SETTINGS["enable_instrumentation"] = True


def bridge_tracer() -> "Tracer":
    """Get the bridge tracer, or a no-op tracer if instrumentation is not enabled.

    The settings are read once, when this module is imported.
    """
    return get_tracer() if OBSERVABILITY_SETTINGS["enable_instrumentation"] else trace.NoOpTracer()


def capture_exception(span: trace.Span, exception: Exception, timestamp: int | None = None) -> None:
    """Set an error for spans."""
    span.set_attribute(OtelAttr.ERROR_TYPE, type(exception).__name__)
    span.record_exception(exception=exception, timestamp=timestamp)
    span.set_status(status=trace.StatusCode.ERROR, description=repr(exception))
