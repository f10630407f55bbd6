# src/fieldplan/core/logging.py
"""Structured logging for fieldplan.

The library emits structlog events (graph_sealed, plan_built,
node_executed, records_failed, records_dropped) through loggers obtained
with get_logger(__name__); it never installs handlers on import. An
application, or the CLI, calls configure_logging() once with the logging
section of its FieldplanSettings.

Both structlog events and plain stdlib records are rendered by one
ProcessorFormatter, so a host application's own logging.getLogger()
output shares the format chosen for fieldplan's events.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

from fieldplan.core.config import LoggingSettings

# Applied to structlog events and to foreign stdlib records alike
_PRE_CHAIN: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.PositionalArgumentsFormatter(),
)


def _strip_formatter_keys(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    # ProcessorFormatter bookkeeping, never part of an event
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _strip_formatter_keys,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [_strip_formatter_keys, structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(settings: LoggingSettings | None = None, *, stream: TextIO | None = None) -> None:
    """Route fieldplan events (and stdlib records) to one stream.

    Args:
        settings: Level and output format; defaults apply when omitted
        stream: Destination, sys.stdout at call time by default

    Calling it again replaces the previous configuration.
    """
    settings = settings or LoggingSettings()

    structlog.configure(
        processors=[*_PRE_CHAIN, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers must pick up a later reconfiguration
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(processors=_render_chain(settings.json_output), foreign_pre_chain=list(_PRE_CHAIN))
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a fieldplan module; resolves the active configuration lazily."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
