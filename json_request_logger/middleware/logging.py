"""
JSON request logging middleware.

Logs one JSON record per request once the downstream app has produced a
response, and optionally a second record as the request arrives:

    {
      "api_version":    "application/json",
      "client_ip":      "23.235.46.37",
      "client_version": "ios/1.6.7",
      "date_time":      "2016-05-31T18:00:13Z",
      "duration":       4.670,
      "handler":        "app.routers.fronts#index",
      "log_type":       "http",
      "method":         "POST",
      "params":         {"user": "jkelly", "password": "[FILTERED]"},
      "path":           "/",
      "request_id":     "d90jcl66vp09r8tke3utjsd1pjrg4ln8",
      "status":         200
    }

client_ip, client_version and params are only present at the debug (or
warn) level, or with include_debug_logging=True.

Usage:
    app.add_middleware(JSONLoggerMiddleware, log="debug", extra_attributes_fn=extra)
    app.add_middleware(JSONLoggerMiddleware, options="debug")
    app.add_middleware(RequestIdMiddleware)
"""

import json
import sys
import time
from collections.abc import Mapping
from typing import Any

from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from json_request_logger.config import FilterConfig, settings
from json_request_logger.context import RequestContext, Upload
from json_request_logger.logging_config import get_logger, request_logger
from json_request_logger.middleware.request_id import current_request_id
from json_request_logger.record import LogOptions, log, log_error

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

logger = get_logger(__name__)


async def collect_params(request: Request) -> dict[str, Any]:
    """
    Query params merged with the parsed body.

    The body is read through request.body() first so Starlette replays it to
    the downstream app. A body that can't be parsed contributes nothing; the
    endpoint decides how to answer it.
    """
    params: dict[str, Any] = dict(request.query_params)
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        body = await request.body()
        if not body:
            return params
        try:
            data = json.loads(body)
        except ValueError:
            logger.debug("request_params_unparsed", content_type=content_type)
            return params
        if isinstance(data, dict):
            params.update(data)
        else:
            params["_json"] = data

    elif content_type.startswith(FORM_CONTENT_TYPES):
        await request.body()
        try:
            async with request.form() as form:
                form_params = {key: _form_value(value) for key, value in form.multi_items()}
        except (HTTPException, MultiPartException) as e:
            logger.debug("request_params_unparsed", content_type=content_type, error=str(e))
            return params
        params.update(form_params)

    return params


def _form_value(value: Any) -> Any:
    if isinstance(value, UploadFile):
        path = getattr(value.file, "name", None)
        return Upload(
            content_type=value.content_type,
            filename=value.filename,
            path=path if isinstance(path, str) else None,
        )
    return value


def build_context(request: Request, params: dict[str, Any], status: int | None = None) -> RequestContext:
    """Snapshot of the request; route info is only there after routing ran."""
    endpoint = request.scope.get("endpoint")
    return RequestContext(
        method=request.method,
        path=request.url.path,
        status=status,
        headers=[(key.decode("latin-1"), value.decode("latin-1")) for key, value in request.scope["headers"]],
        params={**params, **request.path_params},
        request_id=current_request_id(),
        controller=getattr(endpoint, "__module__", None),
        action=getattr(endpoint, "__name__", None),
        assigns=dict(request.scope.get("state") or {}),
        private=request.scope,
    )


class JSONLoggerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs each request as a single JSON line.

    Options:
    - log: level name (debug, info, warn, error); default info
    - log_request: also log when the request arrives, without duration
    - extra_attributes_fn: callable(RequestContext) -> mapping merged into the record
    - include_debug_logging: force debug fields at any level
    - sink / filter_config: overrides, mostly for tests

    The options can also be given together as `options`: a bare level name,
    a mapping of the keys above, or a LogOptions.

    The body is only read and parsed when records carry params.
    """

    def __init__(
        self,
        app,
        options: str | Mapping[str, Any] | LogOptions | None = None,
        sink=None,
        filter_config: FilterConfig | None = None,
        **option_values: Any,
    ):
        super().__init__(app)
        if options is not None and option_values:
            raise TypeError("Pass options either as `options` or as keywords, not both")
        self.options = LogOptions.from_value(options if options is not None else option_values)
        self.sink = sink
        self.filter_config = filter_config

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        sink = self.sink or request_logger()
        config = self.filter_config or settings.filter_config()
        params = await collect_params(request) if self.options.debug_fields_enabled else {}

        if self.options.log_request:
            log(build_context(request, params), self.options.log, None, self.options, sink, config)

        try:
            response = await call_next(request)
        except Exception:
            log_error(*sys.exc_info(), sink=sink)
            raise

        log(
            build_context(request, params, response.status_code),
            self.options.log,
            start,
            self.options,
            sink,
            config,
        )
        return response
