"""Posts API(목록 파라미터/생성/수정/삭제/리비전) 동작을 검증하는 자동화 테스트입니다."""

import json

from tests.conftest import auth_headers


def _create(client, headers, payload, post_type="products"):
    resp = client.post(f"/api/posts/{post_type}", json=payload, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_and_get_post(client, seed_users, seed_types):
    headers = auth_headers(client, "editor001")
    created = _create(client, headers, {"title": "Red Shirt", "price": 100, "color": "red", "status": "published"})
    assert created["slug"] == "red-shirt"
    assert created["price"] == 100

    resp = client.get("/api/posts/products/red-shirt", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == created["id"]
    assert body["title"] == "Red Shirt"
    assert body["terms"] == {}


def test_list_with_meta_query_and_totals(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    _create(client, headers, {"title": "Red", "color": "red", "price": 100, "status": "published"})
    _create(client, headers, {"title": "Blue", "color": "blue", "price": 200, "featured": True})
    _create(client, headers, {"title": "Green", "color": "green", "price": 50, "status": "published"})

    meta_query = json.dumps({"relation": "OR", "queries": [
        {"key": "featured", "value": True},
        {"key": "price", "value": 100, "compare": ">"},
    ]})
    resp = client.get("/api/posts/products", params={"meta_query": meta_query}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert [item["slug"] for item in data["items"]] == ["blue"]
    assert data["total"] == 3
    assert data["total_current"] == 1
    assert data["total_published"] == 2
    assert data["total_drafts"] == 1

    resp = client.get(
        "/api/posts/products",
        params={"meta_query": json.dumps([{"key": "color", "value": ["red", "green"], "compare": "IN"}]),
                "orderBy": "slug", "sort": "asc"},
        headers=headers,
    )
    assert [item["slug"] for item in resp.json()["items"]] == ["green", "red"]


def test_list_search_and_pagination(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    for title in ("alpha lamp", "beta lamp", "gamma chair"):
        _create(client, headers, {"title": title})

    resp = client.get(
        "/api/posts/products",
        params={"search": "lamp", "searchable": json.dumps(["title"]), "limit": 1, "orderBy": "id", "sort": "asc"},
        headers=headers,
    )
    data = resp.json()
    assert [item["slug"] for item in data["items"]] == ["alpha-lamp"]
    assert data["total_current"] == 2
    assert data["limit"] == 1


def test_malformed_json_parameter_is_rejected(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    resp = client.get("/api/posts/products", params={"filters": "{broken"}, headers=headers)
    assert resp.status_code == 422


def test_unknown_post_type_returns_404(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    assert client.get("/api/posts/unknown", headers=headers).status_code == 404


def test_anonymous_list_is_empty_and_create_forbidden(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    _create(client, headers, {"title": "Hidden"})

    resp = client.get("/api/posts/products")
    assert resp.status_code == 200
    assert resp.json()["items"] == []
    assert client.post("/api/posts/products", json={"title": "x"}).status_code == 403


def test_author_sees_only_own_posts(client, seed_users, seed_types):
    admin_headers = auth_headers(client, "admin001")
    author_headers = auth_headers(client, "author001")
    other_headers = auth_headers(client, "author002")

    admin_post = _create(client, admin_headers, {"title": "Admin Post"})
    own = _create(client, author_headers, {"title": "Author Post"})

    listed = client.get("/api/posts/products", headers=author_headers).json()
    assert [item["id"] for item in listed["items"]] == [own["id"]]

    assert client.get(f"/api/posts/products/{own['id']}", headers=author_headers).status_code == 200
    assert client.get(f"/api/posts/products/{admin_post['id']}", headers=author_headers).status_code == 403
    assert client.patch(
        f"/api/posts/products/{own['id']}", json={"title": "Edited"}, headers=other_headers
    ).status_code == 403

    edited = client.patch(f"/api/posts/products/{own['id']}", json={"title": "Edited"}, headers=author_headers)
    assert edited.status_code == 200
    assert edited.json()["title"] == "Edited"


def test_update_revisions_endpoint(client, seed_users, seed_types):
    headers = auth_headers(client, "editor001")
    created = _create(client, headers, {"title": "A", "price": 100})

    client.patch(f"/api/posts/products/{created['id']}", params={"comment": "retitle"}, json={"title": "B"}, headers=headers)
    client.patch(f"/api/posts/products/{created['id']}", json={"title": "B"}, headers=headers)
    client.patch(f"/api/posts/products/{created['id']}", json={"price": 200}, headers=headers)

    resp = client.get(f"/api/posts/products/{created['id']}/revisions", headers=headers)
    assert resp.status_code == 200
    revisions = resp.json()
    assert [(r["field_slug"], r["value"], r["comment"]) for r in revisions] == [("title", "B", "retitle")]


def test_soft_and_permanent_delete(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    created = _create(client, headers, {"title": "Trash Me"})

    resp = client.delete(f"/api/posts/products/{created['id']}", headers=headers)
    assert resp.status_code == 200
    assert client.get("/api/posts/products", headers=headers).json()["items"] == []
    trashed = client.get("/api/posts/products", params={"trashed": "true"}, headers=headers).json()
    assert [item["id"] for item in trashed["items"]] == [created["id"]]

    resp = client.delete(f"/api/posts/products/{created['id']}", params={"permanently": "true"}, headers=headers)
    assert resp.status_code == 200
    assert client.get(f"/api/posts/products/{created['id']}", headers=headers).status_code == 404
    trashed = client.get("/api/posts/products", params={"trashed": "true"}, headers=headers).json()
    assert trashed["items"] == []


def test_taxonomy_query_over_api(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    term = client.post("/api/terms/products/categories", json={"title": "Sale"}, headers=headers).json()
    tagged = _create(client, headers, {"title": "Tagged", "terms": [term["id"]]})
    _create(client, headers, {"title": "Plain"})

    resp = client.get(
        "/api/posts/products",
        params={"taxonomy_query": json.dumps({"taxonomy": "categories", "term": term["id"]})},
        headers=headers,
    )
    items = resp.json()["items"]
    assert [item["id"] for item in items] == [tagged["id"]]
    assert items[0]["terms"]["categories"][0]["slug"] == "sale"
    assert items[0]["terms"]["categories"][0]["post_count"] == 1
