"""Post-Term 관계 저장소 동작을 검증하는 자동화 테스트입니다."""

from app.models.post import Post
from app.models.term import Term, TermRelationship
from app.services import relationship_store


def _seed(db):
    post = Post(slug="phone", status="published", post_type_slug="products")
    other = Post(slug="tablet", status="published", post_type_slug="products")
    terms = [
        Term(slug="mobile", status="published", taxonomy_slug="categories", post_type_slug="products"),
        Term(slug="sale", status="published", taxonomy_slug="labels", post_type_slug="products"),
        Term(slug="new", status="published", taxonomy_slug="labels", post_type_slug="products"),
    ]
    db.add_all([post, other, *terms])
    db.commit()
    return post, other, terms


def test_resolve_term_ids_accepts_lists_objects_and_groups():
    assert relationship_store.resolve_term_ids([1, 2, 2]) == [1, 2]
    assert relationship_store.resolve_term_ids([{"id": 3}, {"slug": "x"}, "4"]) == [3, 4]
    assert relationship_store.resolve_term_ids({"tags": [1, {"id": 2}], "category": 3}) == [1, 2, 3]
    assert relationship_store.resolve_term_ids([]) == []


def test_replace_relationships_replaces_previous_set(db):
    post, _, terms = _seed(db)
    relationship_store.replace_relationships(db, post.id, [terms[0].id, terms[1].id])
    db.commit()
    relationship_store.replace_relationships(db, post.id, [terms[2].id])
    db.commit()

    rows = db.query(TermRelationship).filter(TermRelationship.post_id == post.id).all()
    assert [row.term_id for row in rows] == [terms[2].id]


def test_replace_relationships_with_empty_set_removes_all(db):
    post, _, terms = _seed(db)
    relationship_store.replace_relationships(db, post.id, [t.id for t in terms])
    db.commit()
    relationship_store.replace_relationships(db, post.id, [])
    db.commit()

    assert db.query(TermRelationship).filter(TermRelationship.post_id == post.id).count() == 0


def test_list_terms_by_posts_groups_by_taxonomy_with_counts(db):
    post, other, terms = _seed(db)
    relationship_store.replace_relationships(db, post.id, [terms[0].id, terms[1].id, terms[2].id])
    relationship_store.replace_relationships(db, other.id, [terms[1].id])
    db.commit()

    grouped = relationship_store.list_terms_by_posts(db, [post.id, other.id])
    assert sorted(grouped[post.id]) == ["categories", "labels"]
    assert [t["slug"] for t in grouped[post.id]["labels"]] == ["sale", "new"]
    sale = grouped[other.id]["labels"][0]
    assert sale["slug"] == "sale"
    assert sale["post_count"] == 2
    assert relationship_store.post_counts(db, [terms[0].id]) == {terms[0].id: 1}
