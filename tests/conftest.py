"""Pytest configuration and fixtures for test suite."""

import json
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "http://backend.test")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from config.settings import BackendSettings, Settings, get_backend_settings, get_settings  # noqa: E402
from services.backend_client import BackendClient  # noqa: E402

# Wednesday
TEST_TODAY = date(2026, 10, 14)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are lru-cached; tests that patch the environment need a fresh read."""
    get_settings.cache_clear()
    get_backend_settings.cache_clear()
    yield
    get_settings.cache_clear()
    get_backend_settings.cache_clear()


class FakeBackend:
    """
    In-memory stand-in for the managed backend, served through httpx.MockTransport.

    GET /rest/v1/<table> returns every row registered for the table (filters
    are recorded, not applied). POST echoes the payload back as stored rows.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.functions: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []
        self.failure: Optional[Tuple[int, Any]] = None

    def fail_with(self, status_code: int, body: Any = None) -> None:
        self.failure = (status_code, body)

    def requests_for(self, table: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.url.path == f"/rest/v1/{table}" and (method is None or r.method == method)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failure is not None:
            status_code, body = self.failure
            return httpx.Response(status_code, json=body if body is not None else {"message": "boom"})

        path = request.url.path
        if path.startswith("/rest/v1/"):
            table = path[len("/rest/v1/"):]
            if request.method == "GET":
                return httpx.Response(200, json=self.tables.get(table, []))
            payload = json.loads(request.content or b"null")
            rows = payload if isinstance(payload, list) else [payload]
            return httpx.Response(201, json=rows)

        if path.startswith("/functions/v1/"):
            name = path[len("/functions/v1/"):]
            if name in self.functions:
                return httpx.Response(200, json=self.functions[name])
        return httpx.Response(404, json={"message": f"No route for {path}"})

    def client(self) -> BackendClient:
        return BackendClient(
            BackendSettings(url="http://backend.test", service_key="test-service-key"),
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def today() -> date:
    return TEST_TODAY


@pytest.fixture
def app(fake_backend):
    """Application wired to the fake backend with the date pinned."""
    from web.app import create_app
    from web.dependencies import get_backend_client, get_today

    application = create_app(Settings(environment="test"))
    application.dependency_overrides[get_backend_client] = fake_backend.client
    application.dependency_overrides[get_today] = lambda: TEST_TODAY
    return application


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
