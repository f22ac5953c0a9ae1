"""Integration tests for per-client rate limiting on the public customer endpoints."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.datastructures import Headers
from fastapi.testclient import TestClient

from agency.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from agency.core.rate_limit import FALLBACK_CLIENT_KEY, derive_client_key

from conftest import T0, FakeClock


class TestDeriveClientKey:
    def test_first_forwarded_entry_wins(self) -> None:
        headers = {
            "x-forwarded-for": " 203.0.113.7 , 10.0.0.1",
            "x-real-ip": "198.51.100.1",
            "cf-connecting-ip": "192.0.2.1",
        }
        assert derive_client_key(headers) == "203.0.113.7"

    def test_real_ip_before_cloudflare(self) -> None:
        headers = {"x-real-ip": "198.51.100.1", "cf-connecting-ip": "192.0.2.1"}
        assert derive_client_key(headers) == "198.51.100.1"

    def test_cloudflare_header(self) -> None:
        assert derive_client_key({"cf-connecting-ip": "192.0.2.1"}) == "192.0.2.1"

    def test_fallback_to_loopback(self) -> None:
        assert derive_client_key({}) == FALLBACK_CLIENT_KEY == "127.0.0.1"

    def test_header_names_are_case_insensitive(self) -> None:
        assert derive_client_key({"X-Forwarded-For": "203.0.113.7"}) == "203.0.113.7"

    def test_empty_values_fall_through(self) -> None:
        assert derive_client_key({"x-forwarded-for": "", "x-real-ip": "198.51.100.1"}) == "198.51.100.1"

    def test_repeated_header_uses_first_occurrence(self) -> None:
        headers = Headers(
            raw=[
                (b"x-forwarded-for", b"203.0.113.7"),
                (b"x-forwarded-for", b"10.0.0.1"),
            ]
        )

        assert derive_client_key(headers) == "203.0.113.7" == headers.get("x-forwarded-for")

    def test_values_are_not_validated(self) -> None:
        assert derive_client_key({"x-forwarded-for": "not-an-ip"}) == "not-an-ip"


def test_admitted_responses_carry_quota_headers(
    limited_app: FastAPI, client: TestClient, fake_clock: FakeClock
) -> None:
    first = client.get("/v1/customers/count")
    second = client.get("/v1/customers/count")

    assert first.status_code == 200
    assert first.json() == {"count": 0}
    assert first.headers["X-RateLimit-Limit"] == "3"
    assert first.headers["X-RateLimit-Remaining"] == "2"
    assert first.headers["X-RateLimit-Reset"] == str(T0 + 60_000)
    assert second.headers["X-RateLimit-Remaining"] == "1"
    assert second.headers["X-RateLimit-Reset"] == str(T0 + 60_000)


def test_exhausted_quota_returns_429(limited_app: FastAPI, client: TestClient, fake_clock: FakeClock) -> None:
    for _ in range(3):
        assert client.get("/v1/customers/count").status_code == 200

    fake_clock.advance(20_000)
    resp = client.get("/v1/customers/count")

    assert resp.status_code == 429
    assert resp.json() == {
        "error": "Rate limit exceeded",
        "message": "Too many requests. Try again in 40 seconds.",
        "retryAfter": 40,
    }
    assert resp.headers["Retry-After"] == "40"
    assert resp.headers["X-RateLimit-Limit"] == "3"
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert resp.headers["X-RateLimit-Reset"] == str(T0 + 60_000)


def test_quota_restored_when_window_ends(limited_app: FastAPI, client: TestClient, fake_clock: FakeClock) -> None:
    for _ in range(4):
        client.get("/v1/customers/count")

    fake_clock.advance(60_000)
    resp = client.get("/v1/customers/count")

    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Remaining"] == "2"
    assert resp.headers["X-RateLimit-Reset"] == str(T0 + 120_000)


def test_clients_are_limited_independently(limited_app: FastAPI, client: TestClient) -> None:
    for _ in range(3):
        client.get("/v1/customers/count", headers={"X-Forwarded-For": "203.0.113.7"})

    blocked = client.get("/v1/customers/count", headers={"X-Forwarded-For": "203.0.113.7"})
    other = client.get("/v1/customers/count", headers={"X-Forwarded-For": "198.51.100.1"})

    assert blocked.status_code == 429
    assert other.status_code == 200
    assert other.headers["X-RateLimit-Remaining"] == "2"


def test_signup_and_count_share_the_client_quota(limited_app: FastAPI, client: TestClient) -> None:
    client.post("/v1/customers", json={"name": "Ana", "email": "ana@example.com"})
    client.post("/v1/customers", json={"name": "Bruno", "email": "bruno@example.com"})
    client.get("/v1/customers/count")

    resp = client.post("/v1/customers", json={"name": "Carla", "email": "carla@example.com"})

    assert resp.status_code == 429
    assert client.get("/v1/customers/count", headers={"X-Real-IP": "192.0.2.50"}).json() == {"count": 2}


def test_rejected_signup_is_not_stored(limited_app: FastAPI, client: TestClient, admin_headers: dict) -> None:
    for _ in range(3):
        client.get("/v1/customers/count")

    resp = client.post("/v1/customers", json={"name": "Late", "email": "late@example.com"})
    listing = client.get("/v1/customers", headers=admin_headers)

    assert resp.status_code == 429
    assert listing.json()["pagination"]["total_items"] == 0


def test_failed_signup_still_reports_quota(limited_app: FastAPI, client: TestClient) -> None:
    client.post("/v1/customers", json={"name": "Ana", "email": "ana@example.com"})

    duplicate = client.post("/v1/customers", json={"name": "Ana", "email": "ana@example.com"})

    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "customer_email_exists"
    assert duplicate.headers["X-RateLimit-Limit"] == "3"
    assert duplicate.headers["X-RateLimit-Remaining"] == "1"
    assert duplicate.headers["X-RateLimit-Reset"] == str(T0 + 60_000)


def test_errors_on_unguarded_routes_have_no_quota_headers(limited_app: FastAPI, client: TestClient) -> None:
    resp = client.get("/v1/services/unknown")

    assert resp.status_code == 404
    assert "X-RateLimit-Limit" not in resp.headers


def test_unguarded_routes_ignore_the_limiter(limited_app: FastAPI, client: TestClient) -> None:
    for _ in range(5):
        resp = client.get("/v1/services")
        assert resp.status_code == 200
        assert "X-RateLimit-Limit" not in resp.headers


def test_sixty_per_minute_default(app: FastAPI, client: TestClient, fake_clock: FakeClock) -> None:
    app.state.rate_limiter = InMemoryFixedWindowRateLimiter(clock=fake_clock)

    statuses = []
    for _ in range(60):
        fake_clock.advance(100)
        statuses.append(client.get("/v1/customers/count").status_code)
    fake_clock.now = T0 + 30_000 + 100
    rejected = client.get("/v1/customers/count")

    assert statuses == [200] * 60
    assert rejected.status_code == 429
    assert rejected.headers["Retry-After"] == "30"
    assert rejected.json()["retryAfter"] == 30


@pytest.fixture
def unlimited_settings(test_settings):
    test_settings.app.rate_limit_enabled = False
    return test_settings


def test_rate_limiting_can_be_disabled(unlimited_settings, limited_app: FastAPI, client: TestClient) -> None:
    for _ in range(10):
        resp = client.get("/v1/customers/count")
        assert resp.status_code == 200
        assert "X-RateLimit-Limit" not in resp.headers
