"""
Logging setup for application logs and request records.

Both outputs share one minimum level:
- application logs go through structlog, with the configured sensitive keys
  redacted from every event, as JSON lines or pretty console output
- request records are written verbatim, one JSON line each, and are only
  built when the level admits them

Call setup_logging() once at startup. Without it, request records still go
to stdout at settings.log_level.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

from json_request_logger.config import settings
from json_request_logger.filters import filter_values

# Where request records go, as installed by setup_logging
_request_log: dict[str, Any] = {"level": None, "file": None}

# Left for the exception and stack renderers as-is
_UNFILTERED_EVENT_KEYS = frozenset({"exc_info", "stack_info"})


def setup_logging(
    level: str | None = None,
    log_format: str | None = None,
    file: TextIO | None = None,
) -> None:
    """
    Configure structlog, stdlib logging and the request record output.

    Args:
        level: Minimum level name; defaults to settings.log_level
        log_format: json or console; defaults to settings.log_format
        file: Output stream for both outputs; defaults to stdout
    """
    level = level or settings.log_level
    log_format = log_format or settings.log_format

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            # Picks up request_id bound by RequestIdMiddleware
            structlog.contextvars.merge_contextvars,
            # Before exception formatting so tracebacks are never truncated
            redact_event,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=file or sys.stdout,
        level=_level_number(level),
    )

    # Request records replace the server's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    _request_log.update(level=level, file=file)


def get_logger(name: str | None = None):
    """
    Application logger, with logger_name set when a name is given.

    The logger stays lazy, so module-level loggers pick up the configuration
    made by setup_logging after import.
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


def redact_event(_logger: Any, _method_name: str, event_dict: dict) -> dict:
    """Processor: apply the configured sensitive keys to application log events."""
    filtered_keys = settings.filter_config().filtered_keys
    return {
        key: value if key in _UNFILTERED_EVENT_KEYS else filter_values({key: value}, filtered_keys)[key]
        for key, value in event_dict.items()
    }


def render_lazy_message(_logger: Any, _method_name: str, event_dict: dict) -> str:
    """
    Final processor for request records.

    The event is either a ready string or a zero-argument callable producing
    one. Processors only run for calls that pass the level filter, so the
    callable is never evaluated for dropped records.
    """
    message = event_dict["event"]
    if callable(message):
        message = message()
    return message


def get_request_logger(level: str | None = None, file: TextIO | None = None):
    """
    Build a sink for request records.

    Args:
        level: Minimum level name; defaults to settings.log_level
        file: Output stream; defaults to stdout

    Returns:
        structlog filtering bound logger emitting one raw JSON line per call
    """
    return structlog.wrap_logger(
        structlog.PrintLogger(file=file),
        processors=[render_lazy_message],
        wrapper_class=structlog.make_filtering_bound_logger(
            _level_number(level or settings.log_level)
        ),
        cache_logger_on_first_use=False,
    )


def request_logger():
    """The sink installed by setup_logging, resolved against the current stdout."""
    return get_request_logger(_request_log["level"], _request_log["file"])


def _level_number(name: str) -> int:
    return getattr(logging, name.upper())
