"""
Structured logging setup using structlog.

Package modules log through the standard library (logging.getLogger(__name__)
with extra fields). setup_logging routes those records through structlog so
they come out as JSON or console lines carrying the bound queue context and
the current trace ids.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from opentelemetry import trace

from typed_tasks.config import Settings, get_settings

LOG_FORMATS = ("json", "console")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add trace_id and span_id of the recording span, if any."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _renderer(log_format: str, stream: TextIO) -> Any:
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {log_format!r}, expected one of {LOG_FORMATS}")
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def setup_logging(settings: Settings | None = None, stream: TextIO | None = None) -> None:
    """
    Configure structured logging.

    Args:
        settings: Optional settings, defaults to get_settings().
        stream: Output stream, defaults to stdout.

    Raises:
        ValueError: If settings.log_format is not json or console.
    """
    settings = settings or get_settings()
    stream = stream or sys.stdout
    renderer = _renderer(settings.log_format, stream)

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # Request logs of the REST transport
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """
    Bind context variables to every log line emitted inside the block.

    Bindings are restored on exit, so concurrent scheduling calls on
    different tasks never see each other's queue context.
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
