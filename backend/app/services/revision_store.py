"""필드 단위 변경 이력(리비전) 저장소입니다. 값이 바뀐 경우에만 새 행을 추가합니다."""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.services.entity_kinds import EntityKind
from app.services.meta_store import decode_value, encode_value

ABSENT = object()


def latest_revision(db: Session, kind: EntityKind, entity_id: int, field_slug: str):
    return (
        db.query(kind.revision_model)
        .filter(kind.revision_fk_column == entity_id, kind.revision_model.field_slug == field_slug)
        .order_by(kind.revision_model.id.desc())
        .first()
    )


def capture_if_changed(
    db: Session,
    kind: EntityKind,
    *,
    entity_id: int,
    field_slug: str,
    new_value: Any = ABSENT,
    author_id: Optional[int] = None,
    comment: Optional[str] = None,
):
    if new_value is ABSENT:
        return None

    last = latest_revision(db, kind, entity_id, field_slug)
    if last is not None and encode_value(decode_value(last.value)) == encode_value(new_value):
        return None

    row = kind.revision_model(
        **{kind.revision_fk: entity_id},
        field_slug=field_slug,
        value=json.dumps(new_value, ensure_ascii=False, default=str),
        author_id=author_id,
        comment=comment,
    )
    db.add(row)
    db.flush()
    return row


def list_revisions(
    db: Session,
    kind: EntityKind,
    entity_id: int,
    field_slug: Optional[str] = None,
) -> List[Any]:
    query = db.query(kind.revision_model).filter(kind.revision_fk_column == entity_id)
    if field_slug:
        query = query.filter(kind.revision_model.field_slug == field_slug)
    return query.order_by(kind.revision_model.id.desc()).all()


def to_response(kind: EntityKind, row) -> Dict[str, Any]:
    return {
        "id": row.id,
        "entity_id": getattr(row, kind.revision_fk),
        "field_slug": row.field_slug,
        "value": decode_value(row.value),
        "author_id": row.author_id,
        "comment": row.comment,
        "created_at": row.created_at,
    }


def delete_revisions(db: Session, kind: EntityKind, entity_id: int) -> int:
    return (
        db.query(kind.revision_model)
        .filter(kind.revision_fk_column == entity_id)
        .delete(synchronize_session=False)
    )
