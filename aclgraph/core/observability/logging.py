"""
Structured Logging Configuration
================================

Logging for processes embedding the ACL lookup, using ``structlog``.

- **Dev / human**: Coloured, pretty-printed console output.
- **Prod / json**: Machine-readable JSON lines.

Environment variables
~~~~~~~~~~~~~~~~~~~~~
- ``LOG_LEVEL``  – DEBUG | INFO | WARNING | ERROR | CRITICAL  (default: INFO)
- ``LOG_FORMAT`` – ``json`` | ``human``  (default: ``human``)

Library modules log through ``logging.getLogger(__name__)``; every
standard-library record is routed through structlog's formatter so all
lines share the configured level and format.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog
from opentelemetry import trace

# Driver loggers that are chatty at INFO
_NOISY_LOGGERS: dict[str, int] = {
    "neo4j": logging.WARNING,
    "neo4j.io": logging.WARNING,
    "neo4j.pool": logging.WARNING,
    "redis": logging.WARNING,
    "opentelemetry": logging.WARNING,
}


def _add_trace_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Inject the active span's trace id when a span is recording."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_format: bool | None = None,
) -> None:
    """Configure process-wide structured logging.

    Parameters
    ----------
    log_level:
        Minimum severity.  Overridden by ``LOG_LEVEL`` env var if set.
    json_format:
        ``True`` → JSON lines, ``False`` → console output.
        When *None* the format is read from ``LOG_FORMAT``.
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "").lower() == "json"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_trace_context,
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Remove any pre-existing handlers to avoid duplicate lines
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    for logger_name, level in _NOISY_LOGGERS.items():
        # Only raise the level, never lower it below the user's choice
        logging.getLogger(logger_name).setLevel(max(level, numeric_level))
