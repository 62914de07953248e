"""
Log record assembly.

A request record is the merge, in order, of:
- base fields (always present, minus any suppressed keys)
- debug fields (client_ip, client_version, params) when debug logging is on
- the handler field
- caller-supplied extra attributes, with None values dropped

Records are serialized inside a callable handed to the sink, so nothing is
built for records the sink's level filter drops.
"""

import json
import time
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

import structlog

from json_request_logger.config import FilterConfig, settings
from json_request_logger.context import RequestContext
from json_request_logger.filters import filter_values
from json_request_logger.headers import api_version, client_ip, client_version, handler_name
from json_request_logger.logging_config import request_logger

ExtraAttributesFn = Callable[[RequestContext], Mapping[str, Any]]

LEVELS = ("debug", "info", "warn", "warning", "error")
VERBOSE_LEVELS = ("debug", "warn", "warning")


@dataclass
class LogOptions:
    log: str = "info"
    log_request: bool = False
    extra_attributes_fn: ExtraAttributesFn | None = None
    # None means "not set"; the debug tier then turns it on
    include_debug_logging: bool | None = None

    def __post_init__(self):
        if self.log not in LEVELS:
            raise ValueError(f"Unsupported log level {self.log!r}, expected one of {LEVELS}")

    @property
    def debug_fields_enabled(self) -> bool:
        """Whether records built with these options carry client_ip, client_version and params."""
        if self.include_debug_logging is not None:
            return self.include_debug_logging
        return self.log in VERBOSE_LEVELS

    @classmethod
    def from_value(cls, value: "str | Mapping[str, Any] | LogOptions | None") -> "LogOptions":
        """Accept a bare level name, a mapping of options, or options as-is."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(log=value)
        return cls(**value)


def utcnow() -> datetime:
    return datetime.now(UTC)


def iso8601(moment: datetime) -> str:
    """Format as YYYY-MM-DDTHH:MM:SSZ in UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}Z"
    )


def duration_ms(start: float, stop: float) -> float:
    """Elapsed milliseconds between two perf_counter readings, 3 decimals."""
    return max(round((stop - start) * 1000, 3), 0.0)


def basic_fields(
    context: RequestContext,
    start: float | None,
    config: FilterConfig,
    clock: Callable[[], float] = time.perf_counter,
    now: Callable[[], datetime] = utcnow,
) -> dict[str, Any]:
    fields = {
        "api_version": api_version(context.headers),
        "date_time": iso8601(now()),
        "log_type": "http",
        "method": context.method,
        "path": context.path,
        "request_id": context.request_id,
        "status": context.status,
    }
    if start is not None:
        fields["duration"] = duration_ms(start, clock())

    for key in config.suppressed_keys:
        fields.pop(key, None)
    return fields


def debug_fields(context: RequestContext, options: LogOptions, config: FilterConfig) -> dict[str, Any]:
    if not options.include_debug_logging:
        return {}
    return {
        "client_ip": client_ip(context.headers),
        "client_version": client_version(context.headers),
        "params": filter_values(context.params or {}, config.filtered_keys),
    }


def handler_fields(context: RequestContext) -> dict[str, Any]:
    return {"handler": handler_name(context)}


def extra_fields(context: RequestContext, options: LogOptions) -> dict[str, Any]:
    if options.extra_attributes_fn is None:
        return {}
    extra = options.extra_attributes_fn(context) or {}
    return {key: value for key, value in extra.items() if value is not None}


def build_record(
    context: RequestContext,
    start: float | None = None,
    options: LogOptions | None = None,
    config: FilterConfig | None = None,
    clock: Callable[[], float] = time.perf_counter,
    now: Callable[[], datetime] = utcnow,
) -> dict[str, Any]:
    """
    Assemble the request record.

    Args:
        context: Request data
        start: perf_counter reading at request start; no duration when None
        options: Middleware options; include_debug_logging decides debug fields
        config: Redaction config; defaults to the process settings
        clock: Source of the stop reading for duration
        now: Source of the wall-clock time for date_time

    Returns:
        Record dict ready for JSON encoding
    """
    options = options or LogOptions()
    config = config or settings.filter_config()

    record = basic_fields(context, start, config, clock, now)
    record.update(debug_fields(context, options, config))
    record.update(handler_fields(context))
    record.update(extra_fields(context, options))
    return record


def log(
    context: RequestContext,
    level: str,
    start: float | None = None,
    options: LogOptions | None = None,
    sink=None,
    config: FilterConfig | None = None,
) -> None:
    """
    Emit a request record.

    error is logged as info and warn as debug. Both debug and info go to the
    sink at info; debug only differs by switching the debug fields on.
    """
    options = options or LogOptions(log=level)

    if level == "error":
        return log(context, "info", start, options, sink, config)
    if level in ("warn", "warning"):
        return log(context, "debug", start, options, sink, config)
    if level == "debug":
        if options.include_debug_logging is None:
            options = replace(options, include_debug_logging=True)
        return _log_message(context, start, options, sink, config)
    if level == "info":
        return _log_message(context, start, options, sink, config)

    raise ValueError(f"Unsupported log level {level!r}, expected one of {LEVELS}")


def _log_message(
    context: RequestContext,
    start: float | None,
    options: LogOptions,
    sink,
    config: FilterConfig | None,
) -> None:
    sink = sink or request_logger()
    sink.info(lambda: json.dumps(build_record(context, start, options, config)))


def log_error(kind: type[BaseException] | None, reason: BaseException, trace, sink=None) -> None:
    """
    Emit an error record for an exception, as returned by sys.exc_info().

    The request id is taken from the structlog context, so this works from
    anywhere inside a request handled behind RequestIdMiddleware.
    """
    sink = sink or request_logger()

    def message() -> str:
        return json.dumps(
            {
                "log_type": "error",
                "message": "".join(traceback.format_exception(kind, reason, trace)),
                "request_id": structlog.contextvars.get_contextvars().get("request_id"),
            }
        )

    sink.error(message)
