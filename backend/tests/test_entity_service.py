"""엔티티 서비스의 권한/소유권/삭제/hook/slug 처리 흐름을 검증하는 자동화 테스트입니다."""

import pytest

from app.config import settings
from app.models.post import Post, PostAuthor, PostMeta
from app.models.term import Term, TermRelationship
from app.services import entity_service
from app.services.hooks import EVENT_DELETE, EVENT_INSERT, EVENT_PUBLISH, EVENT_TRASH, EVENT_UNTRASH
from app.services.query_compiler import ListQuery
from app.utils.errors import NotFound, PermissionDenied, ValidationFailed
from app.utils.permissions import ANONYMOUS
from tests.conftest import actor_of


@pytest.fixture
def products(db, seed_types):
    return entity_service.post_target(db, "products")


def test_unknown_post_type_is_not_found(db, seed_types):
    with pytest.raises(NotFound):
        entity_service.post_target(db, "missing")
    with pytest.raises(NotFound):
        entity_service.term_target(db, "products", "missing")


def test_create_merges_meta_and_records_owner(db, seed_users, products, hooks):
    author = seed_users["author"]
    created = entity_service.create_entity(
        db, products, actor_of(author), {"title": "Blue Shirt", "price": 150, "color": "blue"}, hooks
    )
    assert created["slug"] == "blue-shirt"
    assert created["status"] == "draft"
    assert created["post_type_slug"] == "products"
    assert created["price"] == 150
    assert created["terms"] == {}

    owner = db.query(PostAuthor).filter(PostAuthor.post_id == created["id"]).one()
    assert owner.user_id == author.user_id


def test_create_requires_slug_or_title(db, seed_users, products, hooks):
    with pytest.raises(ValidationFailed):
        entity_service.create_entity(db, products, actor_of(seed_users["admin"]), {"price": 1}, hooks)


def test_create_without_capability_is_denied(db, seed_users, products, hooks):
    with pytest.raises(PermissionDenied):
        entity_service.create_entity(db, products, actor_of(seed_users["subscriber"]), {"title": "x"}, hooks)
    with pytest.raises(PermissionDenied):
        entity_service.create_entity(db, products, ANONYMOUS, {"title": "x"}, hooks)


def test_duplicate_slugs_get_numeric_suffix(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    first = entity_service.create_entity(db, products, actor, {"title": "Shirt"}, hooks)
    second = entity_service.create_entity(db, products, actor, {"title": "Shirt"}, hooks)
    third = entity_service.create_entity(db, products, actor, {"slug": "shirt"}, hooks)
    assert [first["slug"], second["slug"], third["slug"]] == ["shirt", "shirt-2", "shirt-3"]

    renamed = entity_service.update_entity(db, products, actor, third["id"], {"slug": "Shirt"}, hooks)
    assert renamed["slug"] == "shirt-3"


def test_get_by_id_or_slug(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    created = entity_service.create_entity(db, products, actor, {"title": "Lamp", "color": "white"}, hooks)

    by_id = entity_service.get_entity(db, products, actor, str(created["id"]), hooks)
    by_slug = entity_service.get_entity(db, products, actor, "lamp", hooks)
    assert by_id["id"] == by_slug["id"] == created["id"]
    assert by_slug["color"] == "white"

    with pytest.raises(NotFound):
        entity_service.get_entity(db, products, actor, "nope", hooks)


def test_owner_without_capability_can_get_and_list(db, seed_users, products, hooks):
    author = actor_of(seed_users["author"])
    other = actor_of(seed_users["author2"])
    admin = actor_of(seed_users["admin"])

    mine = entity_service.create_entity(db, products, author, {"title": "Mine"}, hooks)
    entity_service.create_entity(db, products, admin, {"title": "Theirs"}, hooks)

    assert entity_service.get_entity(db, products, author, mine["id"], hooks)["slug"] == "mine"
    listed = entity_service.list_entities(db, products, author, ListQuery(), hooks)
    assert [item["slug"] for item in listed["items"]] == ["mine"]
    assert listed["total"] == 1

    with pytest.raises(PermissionDenied):
        entity_service.get_entity(db, products, other, mine["id"], hooks)
    assert entity_service.list_entities(db, products, other, ListQuery(), hooks)["items"] == []
    assert entity_service.list_entities(db, products, ANONYMOUS, ListQuery(), hooks)["total"] == 0


def test_type_capabilities_narrow_route_capabilities(db, seed_users, seed_types, hooks):
    notes = entity_service.post_target(db, "notes")
    editor = actor_of(seed_users["editor"])
    admin = actor_of(seed_users["admin"])

    note = entity_service.create_entity(db, notes, editor, {"title": "memo"}, hooks)
    # notes 타입은 read 계열 capability를 선언하지 않으므로 관리자도 소유자가 아니면 조회할 수 없다.
    with pytest.raises(PermissionDenied):
        entity_service.get_entity(db, notes, admin, note["id"], hooks)
    assert entity_service.get_entity(db, notes, editor, note["id"], hooks)["slug"] == "memo"


def test_soft_delete_then_untrash(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    events = []
    hooks.on("posts:products", EVENT_TRASH, lambda ctx, entity: events.append(("trash", entity["id"])))
    hooks.on("*", EVENT_UNTRASH, lambda ctx, entity: events.append(("untrash", entity["id"])))

    created = entity_service.create_entity(db, products, actor, {"title": "Chair"}, hooks)
    entity_service.delete_entity(db, products, actor, created["id"], hooks)

    live = entity_service.list_entities(db, products, actor, ListQuery(), hooks)
    trashed = entity_service.list_entities(db, products, actor, ListQuery(trashed=True), hooks)
    assert live["items"] == []
    assert [item["id"] for item in trashed["items"]] == [created["id"]]

    restored = entity_service.update_entity(db, products, actor, created["id"], {"deleted_at": None}, hooks)
    assert restored["deleted_at"] is None
    assert events == [("trash", created["id"]), ("untrash", created["id"])]


def test_permanent_delete_removes_everything(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    deleted_events = []
    hooks.on("posts:products", EVENT_DELETE, lambda ctx, entity: deleted_events.append(entity["slug"]))

    term = Term(slug="sale", status="published", taxonomy_slug="categories", post_type_slug="products")
    db.add(term)
    db.commit()

    created = entity_service.create_entity(db, products, actor, {"title": "Desk", "price": 1, "terms": [term.id]}, hooks)
    entity_service.update_entity(db, products, actor, created["id"], {"title": "Desk 2"}, hooks)
    entity_service.delete_entity(db, products, actor, created["id"], hooks, permanently=True)

    assert db.query(Post).filter(Post.id == created["id"]).first() is None
    assert db.query(PostMeta).filter(PostMeta.post_id == created["id"]).count() == 0
    assert db.query(TermRelationship).filter(TermRelationship.post_id == created["id"]).count() == 0
    assert entity_service.list_entities(db, products, actor, ListQuery(trashed=True), hooks)["items"] == []
    assert deleted_events == ["desk"]


def test_before_delete_hook_vetoes(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    hooks.add_before_delete("posts:products", lambda ctx, entity: entity.get("price") != 999)
    created = entity_service.create_entity(db, products, actor, {"title": "Locked", "price": 999}, hooks)

    with pytest.raises(PermissionDenied):
        entity_service.delete_entity(db, products, actor, created["id"], hooks, permanently=True)
    assert db.query(Post).filter(Post.id == created["id"]).first() is not None


def test_before_insert_and_transform_hooks(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    inserted = []

    def force_price(ctx, core, meta):
        return core, {**meta, "price": meta.get("price", 0) + 1}

    hooks.add_before_insert("posts:products", force_price)
    hooks.add_transform("posts:products", "title", lambda ctx, value, entity: value.upper())
    hooks.on("posts:products", EVENT_INSERT, lambda ctx, entity: inserted.append(entity["id"]))
    hooks.on("posts:products", EVENT_PUBLISH, lambda ctx, entity: inserted.append("published"))

    created = entity_service.create_entity(
        db, products, actor, {"title": "lamp", "price": 10, "status": "published"}, hooks
    )
    assert created["price"] == 11
    assert created["title"] == "LAMP"
    assert inserted == [created["id"], "published"]


def test_failing_listener_does_not_break_mutation(db, seed_users, products, hooks):
    def boom(ctx, entity):
        raise RuntimeError("listener failure")

    hooks.on("*", EVENT_INSERT, boom)
    created = entity_service.create_entity(db, products, actor_of(seed_users["admin"]), {"title": "ok"}, hooks)
    assert db.query(Post).filter(Post.id == created["id"]).first() is not None


def test_authors_meta_accumulates_editors(db, seed_users, seed_types, hooks):
    articles = entity_service.post_target(db, "articles")
    editor = seed_users["editor"]
    admin = seed_users["admin"]

    created = entity_service.create_entity(db, articles, actor_of(editor), {"title": "News"}, hooks)
    assert created["authors"] == [editor.user_id]

    updated = entity_service.update_entity(db, articles, actor_of(admin), created["id"], {"title": "News!"}, hooks)
    assert updated["authors"] == [editor.user_id, admin.user_id]


def test_terms_payload_replaces_relationships(db, seed_users, products, hooks):
    actor = actor_of(seed_users["admin"])
    categories = entity_service.term_target(db, "products", "categories")
    sale = entity_service.create_entity(db, categories, actor, {"title": "Sale"}, hooks)
    new = entity_service.create_entity(db, categories, actor, {"title": "New"}, hooks)

    post = entity_service.create_entity(db, products, actor, {"title": "Cap", "terms": {"categories": [sale["id"]]}}, hooks)
    assert [t["slug"] for t in post["terms"]["categories"]] == ["sale"]

    post = entity_service.update_entity(db, products, actor, post["id"], {"terms": [{"id": new["id"]}]}, hooks)
    assert [t["slug"] for t in post["terms"]["categories"]] == ["new"]

    post = entity_service.update_entity(db, products, actor, post["id"], {"terms": []}, hooks)
    assert post["terms"] == {}


def test_term_parent_and_permanent_delete_detaches_children(db, seed_users, seed_types, hooks):
    actor = actor_of(seed_users["admin"])
    categories = entity_service.term_target(db, "products", "categories")
    parent = entity_service.create_entity(db, categories, actor, {"title": "Clothing"}, hooks)
    child = entity_service.create_entity(db, categories, actor, {"title": "Shirts", "parent_id": parent["id"]}, hooks)
    assert child["parent_id"] == parent["id"]

    with pytest.raises(ValidationFailed):
        entity_service.update_entity(db, categories, actor, child["id"], {"parent_id": child["id"]}, hooks)

    entity_service.delete_entity(db, categories, actor, parent["id"], hooks, permanently=True)
    assert entity_service.get_entity(db, categories, actor, child["id"], hooks)["parent_id"] is None


def test_permanent_attachment_delete_removes_file(db, seed_users, tmp_path, monkeypatch, hooks):
    from app.models.post_type import PostType

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    (tmp_path / "2026").mkdir()
    stored = tmp_path / "2026" / "photo.png"
    stored.write_bytes(b"png")

    db.add(PostType(slug="attachments", name="Attachments"))
    db.commit()
    attachments = entity_service.post_target(db, "attachments")
    actor = actor_of(seed_users["admin"])
    created = entity_service.create_entity(
        db, attachments, actor, {"title": "photo", "file": {"path": "2026/photo.png"}}, hooks
    )

    entity_service.delete_entity(db, attachments, actor, created["id"], hooks, permanently=True)
    assert not stored.exists()
