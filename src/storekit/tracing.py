"""OpenTelemetry tracing for storage operations.

Spans carry the driver name, the target bucket and a SHA-256 of the object
name. Raw object names may embed user data and are never exported.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from storekit.errors import ObjectStorageError
from storekit.models import Bucket, ObjectMetadata
from storekit.observability.tracing import is_tracing_enabled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _name_sha256(name: str) -> str:
    return hashlib.sha256(name.encode("utf-8")).hexdigest()


def traced_store_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace Store methods with OpenTelemetry.

    Args:
        operation: Operation name (e.g., "create_object", "list_buckets").

    Returns:
        Decorated method that emits a ``storekit.store.<operation>`` span
        when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, *args, **kwargs)

            from opentelemetry import trace

            tracer = trace.get_tracer("storekit.store")
            with tracer.start_as_current_span(f"storekit.store.{operation}") as span:
                span.set_attribute("storage.driver", getattr(self, "driver_name", "unknown"))

                # bucket="" means no bucket for this call, not the selected one
                bucket = kwargs.get("bucket")
                if bucket is None:
                    bucket = getattr(self, "bucket", "")
                if bucket:
                    span.set_attribute("storekit.bucket", bucket)
                if args and isinstance(args[0], str) and args[0]:
                    span.set_attribute("storekit.name_sha256", _name_sha256(args[0]))

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    if isinstance(e, ObjectStorageError):
                        span.set_attribute("storekit.error_kind", e.kind.value)
                    raise

                _add_result_attributes(span, result)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add result-based attributes to span safely.

    Only sizes, counts and content types are recorded.
    """
    if isinstance(result, ObjectMetadata):
        span.set_attribute("storekit.object_size_bytes", result.size)
        span.set_attribute("storekit.object_content_type", result.content_type)
    elif isinstance(result, bytes):
        span.set_attribute("storekit.object_size_bytes", len(result))
    elif isinstance(result, tuple) and len(result) == 2 and isinstance(result[0], bool):
        span.set_attribute("storekit.object_exists", result[0])
    elif isinstance(result, list):
        if result and isinstance(result[0], Bucket):
            span.set_attribute("storekit.bucket_count", len(result))
        else:
            span.set_attribute("storekit.object_count", len(result))
