"""Values pulled out of request headers and route metadata."""

from json_request_logger.context import RequestContext

NOT_AVAILABLE = "N/A"


def get_header(headers: list[tuple[str, str]], name: str, default: str | None = None) -> str | None:
    """Case-insensitive header lookup; the first matching pair wins."""
    name = name.lower()
    for key, value in headers:
        if key.lower() == name:
            return value
    return default


def api_version(headers: list[tuple[str, str]]) -> str:
    return get_header(headers, "accept", NOT_AVAILABLE)


def client_ip(headers: list[tuple[str, str]]) -> str:
    """Leftmost address of X-Forwarded-For (the original client)."""
    forwarded = get_header(headers, "x-forwarded-for", NOT_AVAILABLE)
    if forwarded == NOT_AVAILABLE:
        return NOT_AVAILABLE
    return forwarded.split(", ")[0]


def client_version(headers: list[tuple[str, str]]) -> str:
    """X-Client-Version, falling back to User-Agent."""
    version = get_header(headers, "x-client-version", NOT_AVAILABLE)
    if version == NOT_AVAILABLE:
        return get_header(headers, "user-agent", NOT_AVAILABLE)
    return version


def handler_name(context: RequestContext) -> str:
    if context.controller and context.action:
        return f"{context.controller}#{context.action}"
    return NOT_AVAILABLE
