from json_request_logger.middleware.logging import JSONLoggerMiddleware
from json_request_logger.middleware.request_id import RequestIdMiddleware

__all__ = [
    "JSONLoggerMiddleware",
    "RequestIdMiddleware",
]
