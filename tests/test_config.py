import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from conftest import ALLOWED_ORIGIN, VALID_LEAD, make_settings

from leadcapture.core.config import Settings
from leadcapture.main import create_app
from leadcapture.security.events import SecurityEventType


def test_defaults():
    settings = make_settings()
    assert settings.max_body_bytes == 8192
    assert settings.rate_limit_requests == 10
    assert settings.rate_limit_period == 60
    assert settings.strict_rate_limit_requests == 5
    assert settings.strict_rate_limit_period == 900
    assert settings.lead_origin_tag == "landing_elevaforge"


def test_origins_are_split_and_trimmed():
    settings = make_settings(ALLOWED_ORIGINS=" https://a.example , https://b.example,, ")
    assert settings.origins() == ["https://a.example", "https://b.example"]


def test_environment_flags():
    assert make_settings(ENVIRONMENT="development").is_development
    assert make_settings(ENVIRONMENT="production").is_production


def test_unknown_environment_is_rejected():
    with pytest.raises(ValidationError):
        make_settings(ENVIRONMENT="prod")


def test_non_positive_limits_are_rejected():
    with pytest.raises(ValidationError):
        make_settings(RATE_LIMIT_REQUESTS=0)


def test_environment_defaults_to_production(monkeypatch, store, sink):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    settings = Settings(
        _env_file=None,
        ALLOWED_ORIGINS=ALLOWED_ORIGIN,
        LOG_LEVEL="WARNING",
        METRICS_ENABLED=False,
    )
    assert settings.environment == "production"

    client = TestClient(create_app(settings, store=store, sink=sink))
    response = client.post("/api/leads", json=VALID_LEAD, headers={"Origin": "http://evil.example"})

    assert response.status_code == 403
    assert store.inserts == []
    assert sink.types() == [SecurityEventType.CSRF_VIOLATION]
    assert client.get("/docs").status_code == 404
