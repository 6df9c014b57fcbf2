"""Post type / taxonomy 레지스트리 API 동작을 검증하는 자동화 테스트입니다."""

from tests.conftest import auth_headers


def test_admin_creates_post_type_with_fields(client, seed_users):
    headers = auth_headers(client, "admin001")
    resp = client.post(
        "/api/post-types",
        json={"slug": "Events", "name": "Events", "fields": [{"slug": "title", "revisions": True}]},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["slug"] == "events"
    assert "read_post" in data["capabilities"]
    assert [f["slug"] for f in data["fields"]] == ["title"]

    field = client.post("/api/post-types/events/fields", json={"slug": "venue"}, headers=headers)
    assert field.status_code == 200
    assert client.post("/api/post-types/events/fields", json={"slug": "venue"}, headers=headers).status_code == 422

    taxonomy = client.post(
        "/api/post-types/events/taxonomies",
        json={"slug": "cities", "name": "Cities", "capabilities": ["read", "read_term"]},
        headers=headers,
    )
    assert taxonomy.status_code == 200
    assert taxonomy.json()["capabilities"] == ["read", "read_term"]

    listed = client.get("/api/post-types/events/taxonomies", headers=headers).json()
    assert [t["slug"] for t in listed] == ["cities"]

    created = client.post("/api/posts/events", json={"title": "Launch"}, headers=headers)
    assert created.status_code == 200


def test_post_type_management_requires_capability(client, seed_users, seed_types):
    headers = auth_headers(client, "editor001")
    assert client.post("/api/post-types", json={"slug": "x", "name": "X"}, headers=headers).status_code == 403
    listed = client.get("/api/post-types", headers=headers)
    assert listed.status_code == 200
    assert [t["slug"] for t in listed.json()] == ["products", "articles", "notes"]


def test_taxonomy_capabilities_restrict_term_creation(client, seed_users):
    headers = auth_headers(client, "admin001")
    client.post("/api/post-types", json={"slug": "events", "name": "Events"}, headers=headers)
    client.post(
        "/api/post-types/events/taxonomies",
        json={"slug": "cities", "name": "Cities", "capabilities": ["read", "read_term"]},
        headers=headers,
    )
    resp = client.post("/api/terms/events/cities", json={"title": "Seoul"}, headers=headers)
    assert resp.status_code == 403
