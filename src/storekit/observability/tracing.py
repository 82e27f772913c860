"""OpenTelemetry tracing for storekit.

storekit is a library, so tracing stays off unless the embedding process asks
for it. When enabled and no tracer provider is installed yet, open_store()
installs one; applications that already configure OpenTelemetry keep their own
provider and storekit spans flow into it.

Environment Variables:
    STOREKIT_OTEL_ENABLED: Set to "1" to emit spans (default: disabled)
    STOREKIT_OTEL_SERVICE_NAME: service.name for the installed provider (default: "storekit")
    STOREKIT_OTEL_EXPORTER: "otlp" or "console" (default: "otlp")
    STOREKIT_OTEL_TEST_CAPTURE: Set to "1" to capture spans in memory for tests

The OTLP exporter reads the standard OTEL_EXPORTER_OTLP_* variables for its
endpoint and headers.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from storekit.config import env_bool

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan

logger = logging.getLogger(__name__)

STOREKIT_OTEL_ENABLED_ENV = "STOREKIT_OTEL_ENABLED"
STOREKIT_OTEL_SERVICE_NAME_ENV = "STOREKIT_OTEL_SERVICE_NAME"
STOREKIT_OTEL_EXPORTER_ENV = "STOREKIT_OTEL_EXPORTER"
STOREKIT_OTEL_TEST_CAPTURE_ENV = "STOREKIT_OTEL_TEST_CAPTURE"

_provider_installed: bool = False
_test_exporter: Any = None  # InMemorySpanExporter once test capture is installed


def is_tracing_enabled() -> bool:
    """Check if storage operations should emit spans."""
    return env_bool(os.environ, STOREKIT_OTEL_ENABLED_ENV, False)


def _build_exporter(test_capture: bool) -> Any:
    global _test_exporter

    if test_capture:
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

        _test_exporter = InMemorySpanExporter()
        return _test_exporter

    if os.environ.get(STOREKIT_OTEL_EXPORTER_ENV, "otlp").strip().lower() == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return ConsoleSpanExporter()

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter()


def configure_tracing() -> bool:
    """Install a tracer provider for storekit spans if tracing is enabled.

    Idempotent. The global provider can only be set once per process, so
    later calls reuse whatever was installed first.

    Returns:
        True if spans will be recorded, False if tracing is disabled or the
        provider could not be installed.
    """
    global _provider_installed

    if not is_tracing_enabled():
        logger.debug("OpenTelemetry tracing disabled (%s not set)", STOREKIT_OTEL_ENABLED_ENV)
        return False

    if _provider_installed:
        return True

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    test_capture = env_bool(os.environ, STOREKIT_OTEL_TEST_CAPTURE_ENV, False)
    service_name = os.environ.get(STOREKIT_OTEL_SERVICE_NAME_ENV, "").strip() or "storekit"

    try:
        exporter = _build_exporter(test_capture)
    except Exception as e:
        logger.warning("OpenTelemetry exporter unavailable, spans will not be exported: %s", e)
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    processor = SimpleSpanProcessor(exporter) if test_capture else BatchSpanProcessor(exporter)
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    _provider_installed = True

    logger.info("OpenTelemetry tracing configured: service=%s capture=%s", service_name, test_capture)
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Return spans captured in memory (empty unless test capture is installed)."""
    if _test_exporter is None:
        return []
    return list(_test_exporter.get_finished_spans())


def clear_test_spans() -> None:
    """Drop spans captured in memory."""
    if _test_exporter is not None:
        _test_exporter.clear()


def reset_tracing() -> None:
    """Drop captured spans between tests.

    The provider itself cannot be replaced once set, so it stays installed.
    """
    clear_test_spans()
