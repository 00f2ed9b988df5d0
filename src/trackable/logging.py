"""
Trackable logging - structured logging via structlog.

Library code only ever calls ``get_logger(__name__)``. Applications decide
how those lines are rendered by calling ``configure_logging()`` once at
startup; with no arguments it takes level, format and service name from
``TrackableSettings``.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="trackable")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars       ← LogContext / bind_context
          3. add_log_level, add_logger_name
          4. StackInfoRenderer, set_exc_info
          5. _add_service_metadata
          6. _elasticsearch_compatible (JSON only)
          7. JSONRenderer | ConsoleRenderer

Examples:
    >>> from trackable.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=True, service="checkout")
    >>> logger = get_logger(__name__)
    >>> logger.debug("stage_applied", caller="add_tax", event_count=3)

    Scoped context for every line emitted by a chain:

    >>> with LogContext(order_id="o-42"):
    ...     Trackable.of(order).map(add_tax, name="add_tax").run(sink)

Tags:
    logging, structlog, observability, json-logging, trackable

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from trackable.settings import get_settings

_SERVICE_NAME = "trackable"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str | None = None,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        json_format: True for JSON, False for console, None for settings,
            then auto (JSON if stdout is not a tty)
        service: Service name to include in logs. Defaults to settings.
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    settings = get_settings()
    level = (level or settings.log_level).upper()
    _SERVICE_NAME = service or settings.service_name

    if json_format is None:
        json_format = settings.json_logs
    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer(default=repr)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(pipeline="pricing", request_id="abc123"):
            Trackable.of(quote).map(apply_discount).run(sink)
        # Context cleared here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())

    async def __aenter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    async def __aexit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
