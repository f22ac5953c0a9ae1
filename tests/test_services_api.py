"""API tests for the services catalog."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def catalog(client: TestClient, admin_headers: dict) -> dict:
    web = client.post(
        "/v1/services/categories",
        json={"name": "Desarrollo Web", "sort_order": 1},
        headers=admin_headers,
    ).json()
    marketing = client.post(
        "/v1/services/categories",
        json={"name": "Marketing Digital", "sort_order": 2},
        headers=admin_headers,
    ).json()

    def create(**payload) -> dict:
        resp = client.post("/v1/services", json=payload, headers=admin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return {
        "web": web,
        "marketing": marketing,
        "landing": create(title="Landing Pages", category_id=web["id"], is_popular=True, price_from=500),
        "ecommerce": create(title="E-commerce", category_id=web["id"], is_featured=True),
        "seo": create(title="SEO Audit", category_id=marketing["id"], short_description="Technical SEO review"),
        "retired": create(title="Flash Sites", category_id=web["id"], is_active=False),
    }


def test_create_derives_slug(catalog: dict) -> None:
    assert catalog["landing"]["slug"] == "landing-pages"
    assert catalog["web"]["slug"] == "desarrollo-web"
    assert catalog["landing"]["views"] == 0


def test_duplicate_slug_conflicts(client: TestClient, admin_headers: dict, catalog: dict) -> None:
    resp = client.post("/v1/services", json={"title": "Landing  Pages!"}, headers=admin_headers)

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "service_slug_exists"


def test_unknown_category_is_404(client: TestClient, admin_headers: dict) -> None:
    resp = client.post("/v1/services", json={"title": "Branding", "category_id": 99}, headers=admin_headers)

    assert resp.status_code == 404


def test_list_only_active_featured_first(client: TestClient, catalog: dict) -> None:
    titles = [s["title"] for s in client.get("/v1/services").json()]

    assert titles == ["E-commerce", "Landing Pages", "SEO Audit"]


def test_list_filters(client: TestClient, catalog: dict) -> None:
    by_category = client.get("/v1/services", params={"category": "marketing-digital"}).json()
    popular = client.get("/v1/services", params={"popular": True}).json()
    searched = client.get("/v1/services", params={"search": "technical"}).json()
    limited = client.get("/v1/services", params={"limit": 1}).json()

    assert [s["slug"] for s in by_category] == ["seo-audit"]
    assert [s["slug"] for s in popular] == ["landing-pages"]
    assert [s["slug"] for s in searched] == ["seo-audit"]
    assert len(limited) == 1


def test_get_by_slug_hides_inactive(client: TestClient, catalog: dict) -> None:
    assert client.get("/v1/services/landing-pages").json()["price_from"] == 500
    assert client.get("/v1/services/flash-sites").status_code == 404


def test_categories_in_sort_order(client: TestClient, catalog: dict) -> None:
    slugs = [c["slug"] for c in client.get("/v1/services/categories").json()]

    assert slugs == ["desarrollo-web", "marketing-digital"]


def test_category_with_services(client: TestClient, catalog: dict) -> None:
    body = client.get("/v1/services/categories/desarrollo-web").json()

    assert body["name"] == "Desarrollo Web"
    assert [s["slug"] for s in body["services"]] == ["e-commerce", "landing-pages"]
    assert client.get("/v1/services/categories/nope").status_code == 404


def test_track_view_increments(client: TestClient, catalog: dict) -> None:
    client.post("/v1/services/seo-audit/views")
    resp = client.post("/v1/services/seo-audit/views")

    assert resp.json() == {"slug": "seo-audit", "views": 2}
    assert client.post("/v1/services/unknown/views").status_code == 404


def test_update_and_delete(client: TestClient, admin_headers: dict, catalog: dict) -> None:
    service_id = catalog["seo"]["id"]

    updated = client.put(
        f"/v1/services/{service_id}",
        json={"title": "SEO Audit Pro", "slug": None, "is_popular": True},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["slug"] == "seo-audit-pro"
    assert updated.json()["is_popular"] is True

    assert client.delete(f"/v1/services/{service_id}", headers=admin_headers).status_code == 200
    assert client.get("/v1/services/seo-audit-pro").status_code == 404


def test_writes_require_admin_key(client: TestClient) -> None:
    assert client.post("/v1/services", json={"title": "X"}).status_code == 403
    assert client.put("/v1/services/1", json={"title": "X"}).status_code == 403
    assert client.delete("/v1/services/1").status_code == 403
    assert client.post("/v1/services/categories", json={"name": "X"}).status_code == 403
    assert client.get("/v1/services/inquiries").status_code == 403


INQUIRY = {
    "client_name": "  Ana Costa ",
    "client_email": " Ana@Example.com ",
    "project_description": "Online store for 200 products.",
    "budget_range": "5k-10k",
    "client_phone": "  ",
}


def test_submit_inquiry_and_list_it(client: TestClient, admin_headers: dict, catalog: dict) -> None:
    resp = client.post(
        "/v1/services/e-commerce/inquiries",
        json=INQUIRY,
        headers={"X-Forwarded-For": "203.0.113.7", "User-Agent": "pytest"},
    )

    assert resp.status_code == 201
    listing = client.get("/v1/services/inquiries", headers=admin_headers).json()
    assert listing["total"] == 1
    inquiry = listing["data"][0]
    assert inquiry["id"] == resp.json()["id"]
    assert inquiry["client_name"] == "Ana Costa"
    assert inquiry["client_email"] == "ana@example.com"
    assert inquiry["client_phone"] is None
    assert inquiry["status"] == "pending"
    assert inquiry["priority"] == "normal"
    assert inquiry["service"] == {"title": "E-commerce", "slug": "e-commerce"}


def test_inquiries_filtered_by_service(client: TestClient, admin_headers: dict, catalog: dict) -> None:
    client.post("/v1/services/e-commerce/inquiries", json=INQUIRY)
    client.post("/v1/services/seo-audit/inquiries", json={**INQUIRY, "client_name": "Bruno"})

    seo = client.get("/v1/services/inquiries", params={"service": "seo-audit"}, headers=admin_headers).json()

    assert seo["total"] == 1
    assert [i["client_name"] for i in seo["data"]] == ["Bruno"]


def test_inquiry_validation(client: TestClient, catalog: dict) -> None:
    missing = client.post("/v1/services/e-commerce/inquiries", json={"client_name": "Ana"})
    bad_email = client.post("/v1/services/e-commerce/inquiries", json={**INQUIRY, "client_email": "ana@"})

    assert missing.status_code == 400
    assert missing.json()["error"]["details"]["fields"] == ["client_email", "project_description"]
    assert bad_email.status_code == 400
    assert bad_email.json()["error"]["code"] == "invalid_email"


def test_inquiry_needs_an_active_service(client: TestClient, catalog: dict) -> None:
    assert client.post("/v1/services/flash-sites/inquiries", json=INQUIRY).status_code == 404
    assert client.post("/v1/services/unknown/inquiries", json=INQUIRY).status_code == 404


def test_deleting_a_service_removes_its_inquiries(client: TestClient, admin_headers: dict, catalog: dict) -> None:
    client.post("/v1/services/seo-audit/inquiries", json=INQUIRY)

    assert client.delete(f"/v1/services/{catalog['seo']['id']}", headers=admin_headers).status_code == 200
    assert client.get("/v1/services/inquiries", headers=admin_headers).json()["total"] == 0
