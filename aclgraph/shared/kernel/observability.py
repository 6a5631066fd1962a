import functools
import inspect
from collections.abc import Callable
from typing import Any

TraceDecorator = Callable[[Callable[..., Any]], Callable[..., Any]]
TraceSpanFunc = Callable[[str | None], TraceDecorator]

_trace_span: TraceSpanFunc | None = None


def set_trace_span(trace_span: TraceSpanFunc | None) -> None:
    """Install (or with ``None`` remove) the tracer used by ``trace_span``."""
    global _trace_span
    _trace_span = trace_span


def trace_span(name: str | None = None) -> TraceDecorator:
    """
    Wrap a function in a tracing span when a tracer is installed.

    Resolved lazily at call time, so decorating at import time is safe even
    before the composition root installs a tracer.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                if _trace_span is None:
                    return await func(*args, **kwargs)
                return await _trace_span(name)(func)(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            if _trace_span is None:
                return func(*args, **kwargs)
            return _trace_span(name)(func)(*args, **kwargs)

        return sync_wrapper

    return decorator
