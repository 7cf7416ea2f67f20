from __future__ import annotations

from fastapi.testclient import TestClient

from budgetbook import models
from budgetbook.config import Settings
from budgetbook.middleware import SECURITY_HEADERS, RateLimitMiddleware
from budgetbook.server import create_app


def test_healthcheck(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_security_headers_are_set(client):
    response = client.get("/api/v1/health")
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value


def test_large_responses_are_compressed(client, database):
    with database.session_scope() as session:
        for n in range(30):
            session.add(models.User(email=f"user{n}@example.com", username=f"user{n}", password="not-a-hash"))

    response = client.get("/api/v1/users", headers={"Accept-Encoding": "gzip"})

    assert response.status_code == 200
    assert response.headers.get("content-encoding") == "gzip"
    assert len(response.json()["response"]) == 30


def test_bad_path_parameter_gets_error_envelope(client):
    response = client.get("/api/v1/entries/not-a-number")
    assert response.status_code == 400
    assert set(response.json()) == {"error", "caption"}


def test_unhandled_errors_use_fallback_envelope(settings, database):
    app = create_app(settings, database)

    @app.get("/explode")
    def explode():
        raise RuntimeError("kaboom")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {
        "error": "kaboom",
        "caption": "If the issue persists, please contact help@example.com",
    }


def test_rate_limit_only_applies_in_production(database):
    production = Settings(environment="production", rate_limit=2, rate_window_seconds=60)
    with TestClient(create_app(production, database)) as client:
        statuses = [client.get("/api/v1/health").status_code for _ in range(3)]
        limited = client.get("/api/v1/health")

    assert statuses == [200, 200, 429]
    assert limited.json()["error"] == "Too many requests, please try again later."
    assert "Retry-After" in limited.headers

    development = Settings(environment="development", rate_limit=2)
    with TestClient(create_app(development, database)) as client:
        assert {client.get("/api/v1/health").status_code for _ in range(5)} == {200}


def test_rate_limit_window_resets():
    now = [0.0]
    limiter = RateLimitMiddleware(app=None, limit=1, window_seconds=10, clock=lambda: now[0])

    assert limiter.hit("1.2.3.4") == (True, 10)
    assert limiter.hit("1.2.3.4")[0] is False
    assert limiter.hit("5.6.7.8")[0] is True

    now[0] = 10.0
    assert limiter.hit("1.2.3.4")[0] is True


def test_expired_windows_are_evicted():
    now = [0.0]
    limiter = RateLimitMiddleware(app=None, limit=1, window_seconds=60, clock=lambda: now[0])
    for n in range(500):
        limiter.hit(f"10.0.{n // 256}.{n % 256}")
    assert len(limiter._windows) == 500

    now[0] = 3600.0
    limiter.hit("192.0.2.1")

    assert list(limiter._windows) == ["192.0.2.1"]


def test_each_app_keeps_its_own_support_caption(database):
    first = create_app(Settings(environment="test", support_email="first@example.com"), database)
    second = create_app(Settings(environment="test", support_email="second@example.com"), database)

    with TestClient(first) as first_client, TestClient(second) as second_client:
        first_error = first_client.get("/api/v1/users/999").json()
        second_error = second_client.get("/api/v1/users/999").json()

    assert first_error["caption"] == "If the issue persists, please contact first@example.com"
    assert second_error["caption"] == "If the issue persists, please contact second@example.com"
