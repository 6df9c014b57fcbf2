"""Terms API(분류별 용어 CRUD/parent 필터/post_count) 동작을 검증하는 자동화 테스트입니다."""

from tests.conftest import auth_headers

BASE = "/api/terms/products/categories"


def test_term_crud_and_parent_filter(client, seed_users, seed_types):
    headers = auth_headers(client, "editor001")
    parent = client.post(BASE, json={"title": "Clothing", "status": "published"}, headers=headers)
    assert parent.status_code == 200, parent.text
    parent = parent.json()
    assert parent["taxonomy_slug"] == "categories"
    assert parent["post_count"] == 0

    child = client.post(BASE, json={"title": "Shirts", "parent_id": parent["id"]}, headers=headers).json()
    client.post(BASE, json={"title": "Shoes"}, headers=headers)

    resp = client.get(BASE, params={"parent_id": parent["id"]}, headers=headers)
    assert resp.status_code == 200
    assert [item["slug"] for item in resp.json()["items"]] == ["shirts"]

    updated = client.patch(f"{BASE}/shirts", json={"title": "T-Shirts"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["title"] == "T-Shirts"

    revisions = client.get(f"{BASE}/{child['id']}/revisions", headers=headers).json()
    assert [r["value"] for r in revisions] == ["T-Shirts"]


def test_term_post_count_and_permanent_delete(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    term = client.post(BASE, json={"title": "Sale"}, headers=headers).json()
    for title in ("one", "two"):
        client.post("/api/posts/products", json={"title": title, "terms": [term["id"]]}, headers=headers)

    listed = client.get(BASE, headers=headers).json()
    assert listed["items"][0]["post_count"] == 2

    resp = client.delete(f"{BASE}/{term['id']}", params={"permanently": "true"}, headers=headers)
    assert resp.status_code == 200
    post = client.get("/api/posts/products/one", headers=headers).json()
    assert post["terms"] == {}


def test_unknown_taxonomy_returns_404(client, seed_users, seed_types):
    headers = auth_headers(client, "admin001")
    assert client.get("/api/terms/products/tags", headers=headers).status_code == 404


def test_subscriber_cannot_create_terms(client, seed_users, seed_types):
    headers = auth_headers(client, "sub001")
    assert client.post(BASE, json={"title": "Nope"}, headers=headers).status_code == 403
