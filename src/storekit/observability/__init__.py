"""storekit observability: OpenTelemetry tracing setup."""

from storekit.observability.tracing import configure_tracing, is_tracing_enabled

__all__ = ["configure_tracing", "is_tracing_enabled"]
