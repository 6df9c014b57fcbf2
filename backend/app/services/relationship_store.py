"""Post와 taxonomy term 사이의 다대다 관계 저장소입니다."""

from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.term import Term, TermRelationship
from app.services import meta_store
from app.services.entity_kinds import TERMS


def _as_term_id(value: Any) -> int | None:
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_term_ids(payload: Any) -> List[int]:
    """terms payload를 평탄화된 중복 없는 term id 목록으로 바꾼다.

    허용 형태: ``[1, 2]``, ``[{"id": 1}]``, ``{"tags": [1, {"id": 2}], "category": 3}``.
    """
    if isinstance(payload, dict):
        groups = list(payload.values())
    elif isinstance(payload, (list, tuple)):
        groups = [payload]
    else:
        groups = [[payload]]

    ids: List[int] = []
    seen = set()
    for group in groups:
        items = group if isinstance(group, (list, tuple)) else [group]
        for item in items:
            term_id = _as_term_id(item)
            if term_id is None or term_id in seen:
                continue
            seen.add(term_id)
            ids.append(term_id)
    return ids


def replace_relationships(db: Session, post_id: int, term_ids: List[int]) -> None:
    db.query(TermRelationship).filter(TermRelationship.post_id == post_id).delete(synchronize_session=False)
    if term_ids:
        db.add_all([TermRelationship(post_id=post_id, term_id=term_id) for term_id in term_ids])
    db.flush()


def delete_for_term(db: Session, term_id: int) -> int:
    return (
        db.query(TermRelationship)
        .filter(TermRelationship.term_id == term_id)
        .delete(synchronize_session=False)
    )


def delete_for_post(db: Session, post_id: int) -> int:
    return (
        db.query(TermRelationship)
        .filter(TermRelationship.post_id == post_id)
        .delete(synchronize_session=False)
    )


def post_counts(db: Session, term_ids: List[int]) -> Dict[int, int]:
    if not term_ids:
        return {}
    rows = (
        db.query(TermRelationship.term_id, func.count(func.distinct(TermRelationship.post_id)))
        .filter(TermRelationship.term_id.in_(term_ids))
        .group_by(TermRelationship.term_id)
        .all()
    )
    return {int(term_id): int(count) for term_id, count in rows}


def list_terms_by_posts(db: Session, post_ids: List[int]) -> Dict[int, Dict[str, List[Dict[str, Any]]]]:
    if not post_ids:
        return {}
    rows = (
        db.query(TermRelationship.post_id, Term)
        .join(Term, Term.id == TermRelationship.term_id)
        .filter(TermRelationship.post_id.in_(post_ids))
        .order_by(TermRelationship.post_id.asc(), Term.id.asc())
        .all()
    )
    term_ids = list({term.id for _, term in rows})
    metas = meta_store.get_meta(db, TERMS, term_ids)
    counts = post_counts(db, term_ids)

    grouped: Dict[int, Dict[str, List[Dict[str, Any]]]] = {}
    for post_id, term in rows:
        item = {**TERMS.row_to_dict(term), **metas.get(term.id, {})}
        item["post_count"] = counts.get(term.id, 0)
        grouped.setdefault(post_id, {}).setdefault(term.taxonomy_slug, []).append(item)
    return grouped
