"""Tests for the admin API key: which routes it guards and what it unlocks."""

import hmac
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from agency.core.auth import is_admin_key, parse_api_keys, validate_api_key, verify_api_key
from agency.core.errors import AuthenticationAppError

ADMIN_ONLY = [
    ("get", "/v1/customers"),
    ("get", "/v1/contacts"),
    ("get", "/v1/contacts/search?q=acme"),
    ("get", "/v1/services/inquiries"),
    ("get", "/v1/admin/stats"),
    ("delete", "/v1/customers/1"),
]


@pytest.fixture
def blog(client: TestClient, admin_headers: dict) -> None:
    for title, status in (("Launch Notes", "draft"), ("Case Study", "published")):
        resp = client.post(
            "/v1/blog/posts",
            json={"title": title, "content": "Body text", "status": status},
            headers=admin_headers,
        )
        assert resp.status_code == 201


class TestAdminRoutes:
    @pytest.mark.parametrize("method,path", ADMIN_ONLY)
    def test_missing_key_is_forbidden(self, client: TestClient, method: str, path: str) -> None:
        resp = client.request(method, path)

        assert resp.status_code == 403
        assert "Missing API key" in resp.json()["detail"]

    @pytest.mark.parametrize("method,path", ADMIN_ONLY)
    def test_unknown_key_is_forbidden(self, client: TestClient, method: str, path: str) -> None:
        resp = client.request(method, path, headers={"X-API-Key": "test-api-key-999"})

        assert resp.status_code == 403
        assert resp.json()["detail"] == "Invalid or missing API key"

    @pytest.mark.parametrize("key", ["test-api-key-123", "test-api-key-456"])
    def test_every_configured_key_opens_the_dashboard(self, client: TestClient, key: str) -> None:
        resp = client.get("/v1/admin/stats", headers={"X-API-Key": key})

        assert resp.status_code == 200
        assert resp.json()["customers"] == 0

    def test_public_form_needs_no_key(self, client: TestClient) -> None:
        resp = client.post("/v1/customers", json={"name": "Ana", "email": "ana@example.com"})

        assert resp.status_code == 201

    @patch("agency.core.auth.settings")
    def test_dashboard_open_when_keys_not_required(self, mock_settings, client: TestClient) -> None:
        mock_settings.app.api_key_required = False

        assert client.get("/v1/admin/stats").status_code == 200

    @patch("agency.core.auth.settings")
    def test_required_but_unconfigured_keys_lock_everyone_out(self, mock_settings, client: TestClient) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = " , "

        resp = client.get("/v1/admin/stats", headers={"X-API-Key": "test-api-key-123"})

        assert resp.status_code == 403
        assert "no valid keys are configured" in resp.json()["detail"]


class TestDraftVisibility:
    def test_anonymous_readers_only_get_published_posts(self, client: TestClient, blog: None) -> None:
        listing = client.get("/v1/blog/posts", params={"include_drafts": True}).json()

        assert [p["slug"] for p in listing["data"]] == ["case-study"]
        assert client.get("/v1/blog/posts/launch-notes").status_code == 404

    def test_admin_key_reveals_drafts(self, client: TestClient, admin_headers: dict, blog: None) -> None:
        listing = client.get("/v1/blog/posts", params={"include_drafts": True}, headers=admin_headers).json()

        assert {p["slug"] for p in listing["data"]} == {"launch-notes", "case-study"}
        assert client.get("/v1/blog/posts/launch-notes", headers=admin_headers).status_code == 200

    def test_wrong_key_reads_like_anonymous(self, client: TestClient, blog: None) -> None:
        resp = client.get("/v1/blog/posts", params={"status": "draft"}, headers={"X-API-Key": "nope"})

        assert resp.status_code == 200
        assert resp.json()["data"] == []


class TestKeyChecks:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("k1", {"k1"}),
            (" k1 ,k2,, k1 ", {"k1", "k2"}),
            (None, set()),
            (" , ", set()),
        ],
    )
    def test_parse_api_keys(self, raw, expected) -> None:
        assert parse_api_keys(raw) == expected

    @patch("agency.core.auth.hmac.compare_digest", wraps=hmac.compare_digest)
    @patch("agency.core.auth.settings")
    def test_keys_compared_in_constant_time(self, mock_settings, mock_compare) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "dashboard-key"

        validate_api_key("dashboard-key")
        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("dashboard-kex")

        assert exc_info.value.code == "invalid_api_key"
        assert [c.args for c in mock_compare.call_args_list] == [
            ("dashboard-key", "dashboard-key"),
            ("dashboard-kex", "dashboard-key"),
        ]

    @patch("agency.core.auth.settings")
    def test_is_admin_key_never_raises(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = None

        assert is_admin_key("anything") is False
        assert is_admin_key(None) is False

    @pytest.mark.asyncio
    @patch("agency.core.auth.settings")
    async def test_dependency_turns_auth_errors_into_403(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "dashboard-key"

        await verify_api_key(x_api_key="dashboard-key")
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(x_api_key="stolen-key")

        assert exc_info.value.status_code == 403
        assert isinstance(exc_info.value.__cause__, AuthenticationAppError)
