"""
Request id middleware.

Reuses a well-formed incoming request id or generates one, binds it to the
structlog context for the request, and echoes it on the response. Records
built later in the chain read it from the context.

Add it last (outermost) so every other middleware sees the id.
"""

import re
import secrets

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from json_request_logger.config import settings
from json_request_logger.logging_config import get_logger

logger = get_logger(__name__)

VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9+/=_-]{20,200}$")


def generate_request_id() -> str:
    """Generate a 32-character request ID."""
    return secrets.token_hex(16)


def current_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("request_id")


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header: str | None = None):
        super().__init__(app)
        self.header = (header or settings.request_id_header).lower()

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(self.header)
        if incoming and VALID_REQUEST_ID.match(incoming):
            request_id = incoming
        else:
            if incoming:
                logger.debug("request_id_rejected", length=len(incoming))
            request_id = generate_request_id()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers[self.header] = request_id
        return response
