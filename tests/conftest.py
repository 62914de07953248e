import pytest
import structlog
from fastapi.testclient import TestClient

from json_request_logger.config import settings
from tests.test_utils import CapturedLog, build_app


@pytest.fixture(autouse=True)
def clean_contextvars():
    """Request ids bound by one test must not leak into the next."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def captured():
    """Request logger capturing every level."""
    return CapturedLog()


@pytest.fixture
def filtered_keys(monkeypatch):
    """Set the process-wide sensitive keys for one test."""

    def set_keys(*keys):
        monkeypatch.setattr(settings, "filtered_keys", list(keys))

    return set_keys


@pytest.fixture
def make_client(captured):
    """Build a test client around an app logging into `captured`."""
    clients = []

    def factory(**options):
        client = TestClient(build_app(captured.sink, **options), raise_server_exceptions=False)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()
