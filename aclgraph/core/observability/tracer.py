"""
OpenTelemetry Tracer Logic
==========================

Span decorator installed into the shared kernel by the composition root.
"""

import functools
import inspect
import logging
from collections.abc import Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

logger = logging.getLogger(__name__)

_tracer: trace.Tracer | None = None


def setup_tracer(service_name: str = "aclgraph", console_export: bool = False) -> trace.Tracer:
    """Create the tracer provider once and return the module tracer."""
    global _tracer

    if _tracer:
        return _tracer

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(__name__)

    logger.info("OpenTelemetry tracer initialized for service: %s", service_name)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Returns the global tracer, falling back to the API's current provider."""
    if _tracer is None:
        return trace.get_tracer(__name__)
    return _tracer


def _start(span_name: str):
    # Failures are recorded explicitly by the wrappers below
    return get_tracer().start_as_current_span(
        span_name, record_exception=False, set_status_on_exception=False
    )


def _record_failure(span: trace.Span, error: Exception) -> None:
    span.record_exception(error)
    span.set_status(trace.Status(trace.StatusCode.ERROR, str(error)))


def trace_span(name: str | None = None):
    """
    Decorator to wrap a function in an OpenTelemetry span.

    Args:
        name: Override the span name. Defaults to function's name.
    """

    def decorator(func: Callable):
        span_name = name or func.__qualname__

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with _start(span_name) as span:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with _start(span_name) as span:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
