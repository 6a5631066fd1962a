from aclgraph.shared.kernel.observability import set_trace_span, trace_span
from aclgraph.shared.kernel.runtime import configure_settings, get_settings

__all__ = [
    "configure_settings",
    "get_settings",
    "set_trace_span",
    "trace_span",
]
