from fastapi import FastAPI

from json_request_logger.config import settings
from json_request_logger.logging_config import setup_logging
from json_request_logger.middleware import JSONLoggerMiddleware, RequestIdMiddleware

# Run: uvicorn json_request_logger.main:app

setup_logging()

app = FastAPI(
    title="json-request-logger demo",
    description="One JSON log line per request",
    version="0.1.0",
)

# Last added runs first, so the request id is bound before records are built
app.add_middleware(JSONLoggerMiddleware, options=settings.log_level.lower())
app.add_middleware(RequestIdMiddleware)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
