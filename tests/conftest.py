import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from leadcapture.core.config import Settings
from leadcapture.main import create_app

ALLOWED_ORIGIN = "http://localhost:3000"

VALID_LEAD = {
    "nombre": "María José",
    "email": "maria@example.com",
    "empresa": "Acme",
    "telefono": "+34 600 000 000",
    "mensaje": "Quiero una landing page",
    "servicio": "web",
    "presupuesto": "5k-10k",
    "contacto_pref": "email",
    "utm_source": "google",
    "utm_medium": "cpc",
    "utm_campaign": "otono",
    "consent": True,
}


class MemorySecuritySink:
    """Collects security events instead of writing them."""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def types(self):
        return [event.type for event in self.events]


class FakeLeadStore:
    def __init__(self, error=None):
        self.inserts = []
        self.error = error

    async def insert(self, table, record):
        if self.error is not None:
            raise self.error
        self.inserts.append((table, dict(record)))


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_settings(**overrides):
    values = {
        "ENVIRONMENT": "testing",
        "ALLOWED_ORIGINS": ALLOWED_ORIGIN,
        "LOG_LEVEL": "WARNING",
        "METRICS_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_request(headers=None, client=("203.0.113.7", 51000), method="POST", path="/api/leads"):
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ],
        "client": client,
    }
    return Request(scope)


@pytest.fixture
def sink():
    return MemorySecuritySink()


@pytest.fixture
def store():
    return FakeLeadStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def app(settings, store, sink, clock):
    return create_app(settings, store=store, sink=sink, clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def origin_headers():
    return {"Origin": ALLOWED_ORIGIN}
