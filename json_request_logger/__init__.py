from json_request_logger.config import FilterConfig, Settings, settings
from json_request_logger.context import RequestContext, Upload
from json_request_logger.filters import FILTERED, filter_values
from json_request_logger.middleware import JSONLoggerMiddleware, RequestIdMiddleware
from json_request_logger.record import LogOptions, build_record, log, log_error

__all__ = [
    "FILTERED",
    "FilterConfig",
    "JSONLoggerMiddleware",
    "LogOptions",
    "RequestContext",
    "RequestIdMiddleware",
    "Settings",
    "Upload",
    "build_record",
    "filter_values",
    "log",
    "log_error",
    "settings",
]
