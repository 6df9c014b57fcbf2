"""엔티티 작성자(소유자) 기록 저장소입니다. 권한이 없는 사용자의 본인 항목 접근 판정에 쓰입니다."""

from sqlalchemy import exists
from sqlalchemy.orm import Session

from app.services.entity_kinds import EntityKind
from app.utils.helpers import utcnow
from app.utils.sql import upsert


def record_touch(db: Session, kind: EntityKind, entity_id: int, user_id: int | None) -> None:
    if user_id is None:
        return
    now = utcnow()
    upsert(
        db,
        kind.author_model,
        {kind.author_fk: entity_id, "user_id": user_id, "created_at": now, "updated_at": now},
        conflict_columns=(kind.author_fk, "user_id"),
        update_values={"updated_at": now},
    )


def is_owner(db: Session, kind: EntityKind, entity_id: int, user_id: int | None) -> bool:
    if user_id is None:
        return False
    return db.query(kind.author_model.id).filter(
        kind.author_fk_column == entity_id,
        kind.author_model.user_id == user_id,
    ).first() is not None


def owned_by_clause(kind: EntityKind, user_id: int):
    return exists().where(
        kind.author_fk_column == kind.pk_column,
        kind.author_model.user_id == user_id,
    )


def delete_owners(db: Session, kind: EntityKind, entity_id: int) -> int:
    return (
        db.query(kind.author_model)
        .filter(kind.author_fk_column == entity_id)
        .delete(synchronize_session=False)
    )
