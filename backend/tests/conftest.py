from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.hazard_store import InMemoryHazardStore
from app.main import create_app
from app.services.geoapify import GeoapifyClient

GEOAPIFY_TEST_URL = "https://geoapify.test"


class FakeUpstream:
    """Canned Geoapify answers keyed by URL path; records every request."""

    def __init__(self) -> None:
        self.responses: Dict[str, Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, path: str, body: Any = None, status: int = 200) -> None:
        self.responses[path] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.get(request.url.path, (404, {"message": "no such endpoint"}))
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_params(self) -> Dict[str, str]:
        return dict(self.requests[-1].url.params)


class StepClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2025, 8, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def settings():
    return Settings(
        HAZARD_STORE="memory",
        GEOAPIFY_BASE_URL=GEOAPIFY_TEST_URL,
        GEOAPIFY_ROUTING_API_KEY="routing-key",
        GEOAPIFY_PLACES_API_KEY="places-key",
        UPSTREAM_TIMEOUT=5,
        ALLOWED_ORIGINS="*",
    )


@pytest.fixture
def store():
    return InMemoryHazardStore()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def geoapify(settings, upstream):
    return GeoapifyClient(settings, transport=upstream.transport)


@pytest.fixture
def client(settings, store, upstream):
    app = create_app(settings, hazard_store=store, upstream_transport=upstream.transport)
    return TestClient(app)
