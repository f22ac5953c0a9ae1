"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any ``agency`` import so the
process-wide settings are built from them.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")

# Set default env vars that all tests might need
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-agency.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from agency.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from agency.core.app_factory import create_app
from agency.core.config import AppSettings, DatabaseSettings, LogSettings, Settings

ADMIN_KEY = "test-api-key-123"
T0 = 1_700_000_000_000


class FakeClock:
    """Controllable epoch-millisecond clock for limiter tests."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        app=AppSettings(),
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
        log=LogSettings(),
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI):
    # Context manager runs the lifespan (engine, tables, session maker)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limited_app(app: FastAPI, fake_clock: FakeClock) -> FastAPI:
    """App whose limiter admits 3 requests per 60 s window on a fake clock."""
    app.state.rate_limiter = InMemoryFixedWindowRateLimiter(limit=3, window_ms=60_000, clock=fake_clock)
    return app
