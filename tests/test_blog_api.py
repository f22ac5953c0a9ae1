"""API tests for blog posts and categories."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

LONG_CONTENT = " ".join(["palabra"] * 450)


def _create(client: TestClient, headers: dict, **payload) -> dict:
    body = {"title": "Untitled", "content": "Some content", **payload}
    resp = client.post("/v1/blog/posts", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def posts(client: TestClient, admin_headers: dict) -> dict:
    category = client.post("/v1/blog/categories", json={"name": "Tutoriales"}, headers=admin_headers).json()
    return {
        "category": category,
        "published": _create(
            client,
            admin_headers,
            title="SEO Basics",
            content=LONG_CONTENT,
            status="published",
            category_id=category["id"],
            tags=["seo", "guide"],
        ),
        "draft": _create(client, admin_headers, title="Upcoming Launch", tags=["news"]),
        "other": _create(client, admin_headers, title="Brand Voice", status="published", author_id="rita"),
    }


def test_create_derives_slug_excerpt_and_reading_time(posts: dict) -> None:
    post = posts["published"]

    assert post["slug"] == "seo-basics"
    assert post["reading_time"] == 3
    assert post["excerpt"].endswith("...")
    assert len(post["excerpt"]) <= 163
    assert post["published_at"] is not None
    assert posts["draft"]["published_at"] is None
    assert posts["draft"]["reading_time"] == 1


def test_create_requires_title_and_content(client: TestClient, admin_headers: dict) -> None:
    resp = client.post("/v1/blog/posts", json={"title": "  ", "content": "x"}, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["fields"] == ["title"]


def test_public_list_shows_only_published(client: TestClient, posts: dict) -> None:
    body = client.get("/v1/blog/posts").json()

    assert {p["slug"] for p in body["data"]} == {"seo-basics", "brand-voice"}
    assert body["pagination"]["total_items"] == 2


def test_public_cannot_see_drafts_even_when_asking(client: TestClient, posts: dict) -> None:
    asked = client.get("/v1/blog/posts", params={"include_drafts": True}).json()
    by_status = client.get("/v1/blog/posts", params={"status": "draft"}).json()

    assert "upcoming-launch" not in {p["slug"] for p in asked["data"]}
    assert by_status["data"] == []
    assert client.get("/v1/blog/posts/upcoming-launch").status_code == 404


def test_admin_sees_drafts(client: TestClient, admin_headers: dict, posts: dict) -> None:
    drafts = client.get("/v1/blog/posts", params={"status": "draft"}, headers=admin_headers).json()
    everything = client.get("/v1/blog/posts", params={"include_drafts": True}, headers=admin_headers).json()

    assert [p["slug"] for p in drafts["data"]] == ["upcoming-launch"]
    assert everything["pagination"]["total_items"] == 3
    assert client.get("/v1/blog/posts/upcoming-launch", headers=admin_headers).status_code == 200


def test_list_filters_and_sorting(client: TestClient, posts: dict) -> None:
    by_tag = client.get("/v1/blog/posts", params={"tag": "seo"}).json()
    by_author = client.get("/v1/blog/posts", params={"author_id": "rita"}).json()
    by_category = client.get("/v1/blog/posts", params={"category_id": posts["category"]["id"]}).json()
    by_title = client.get("/v1/blog/posts", params={"sort_by": "title", "sort_order": "asc"}).json()
    searched = client.get("/v1/blog/posts", params={"search": "brand"}).json()

    assert [p["slug"] for p in by_tag["data"]] == ["seo-basics"]
    assert [p["slug"] for p in by_author["data"]] == ["brand-voice"]
    assert [p["slug"] for p in by_category["data"]] == ["seo-basics"]
    assert [p["title"] for p in by_title["data"]] == ["Brand Voice", "SEO Basics"]
    assert [p["slug"] for p in searched["data"]] == ["brand-voice"]


def test_invalid_sort_field(client: TestClient) -> None:
    resp = client.get("/v1/blog/posts", params={"sort_by": "author"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_sort_field"


def test_reading_a_published_post_counts_views(client: TestClient, posts: dict) -> None:
    reads = [client.get("/v1/blog/posts/brand-voice").json()["views"] for _ in range(4)]

    assert reads == [1, 2, 3, 4]
    listed = client.get("/v1/blog/posts", params={"sort_by": "views"}).json()
    assert [p["slug"] for p in listed["data"]] == ["brand-voice", "seo-basics"]
    assert listed["data"][0]["views"] == 4


def test_admin_draft_reads_are_not_counted(client: TestClient, admin_headers: dict, posts: dict) -> None:
    client.get("/v1/blog/posts/upcoming-launch", headers=admin_headers)
    second = client.get("/v1/blog/posts/upcoming-launch", headers=admin_headers).json()

    assert second["views"] == 0


def test_popular_posts(client: TestClient, posts: dict) -> None:
    client.get("/v1/blog/posts/seo-basics")
    client.get("/v1/blog/posts/seo-basics")
    client.get("/v1/blog/posts/brand-voice")

    popular = client.get("/v1/blog/posts/popular").json()
    top_one = client.get("/v1/blog/posts/popular", params={"limit": 1}).json()

    assert [p["slug"] for p in popular] == ["seo-basics", "brand-voice"]
    assert [p["views"] for p in popular] == [2, 1]
    assert [p["slug"] for p in top_one] == ["seo-basics"]


def test_publish_and_unpublish(client: TestClient, admin_headers: dict, posts: dict) -> None:
    post_id = posts["draft"]["id"]

    published = client.post(f"/v1/blog/posts/{post_id}/publish", headers=admin_headers).json()
    assert published["status"] == "published"
    assert published["published_at"] is not None
    assert client.get("/v1/blog/posts/upcoming-launch").status_code == 200

    unpublished = client.post(f"/v1/blog/posts/{post_id}/unpublish", headers=admin_headers).json()
    assert unpublished["status"] == "draft"
    assert client.get("/v1/blog/posts/upcoming-launch").status_code == 404


def test_update_recomputes_derived_fields(client: TestClient, admin_headers: dict, posts: dict) -> None:
    post_id = posts["draft"]["id"]

    resp = client.put(
        f"/v1/blog/posts/{post_id}",
        json={"content": LONG_CONTENT, "tags": ["news", " launch "]},
        headers=admin_headers,
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["reading_time"] == 3
    assert body["excerpt"].endswith("...")
    assert body["tags"] == ["news", "launch"]


def test_update_slug_conflict(client: TestClient, admin_headers: dict, posts: dict) -> None:
    resp = client.put(
        f"/v1/blog/posts/{posts['draft']['id']}",
        json={"slug": "seo-basics"},
        headers=admin_headers,
    )

    assert resp.status_code == 409


def test_delete(client: TestClient, admin_headers: dict, posts: dict) -> None:
    post_id = posts["other"]["id"]

    assert client.delete(f"/v1/blog/posts/{post_id}", headers=admin_headers).status_code == 200
    assert client.get("/v1/blog/posts/brand-voice").status_code == 404
    assert client.delete(f"/v1/blog/posts/{post_id}", headers=admin_headers).status_code == 404


def test_categories(client: TestClient, admin_headers: dict, posts: dict) -> None:
    listing = client.get("/v1/blog/categories").json()
    duplicate = client.post("/v1/blog/categories", json={"name": "Tutoriales"}, headers=admin_headers)

    assert [c["slug"] for c in listing] == ["tutoriales"]
    assert duplicate.status_code == 409


def test_writes_require_admin_key(client: TestClient) -> None:
    assert client.post("/v1/blog/posts", json={"title": "x", "content": "y"}).status_code == 403
    assert client.post("/v1/blog/posts/1/publish").status_code == 403
    assert client.post("/v1/blog/categories", json={"name": "x"}).status_code == 403
