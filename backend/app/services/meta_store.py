"""엔티티별 key/value 메타데이터 저장소입니다. 값은 정규화된 JSON 문자열로 저장합니다."""

import json
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from app.services.entity_kinds import EntityKind
from app.utils.sql import upsert


def canonicalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: canonicalize(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    return value


def encode_value(value: Any) -> str:
    return json.dumps(canonicalize(value), ensure_ascii=False, default=str)


def decode_value(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        # 잘못된 JSON은 원문 문자열 그대로 반환한다.
        return raw


def get_meta(db: Session, kind: EntityKind, entity_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
    ids = list(entity_ids)
    if not ids:
        return {}
    rows = (
        db.query(kind.meta_model)
        .filter(kind.meta_fk_column.in_(ids))
        .order_by(kind.meta_model.id.asc())
        .all()
    )
    result: Dict[int, Dict[str, Any]] = {}
    for row in rows:
        entity_id = getattr(row, kind.meta_fk)
        result.setdefault(entity_id, {})[row.field_slug] = decode_value(row.value)
    return result


def get_meta_value(db: Session, kind: EntityKind, entity_id: int, field_slug: str, default: Any = None) -> Any:
    row = (
        db.query(kind.meta_model.value)
        .filter(kind.meta_fk_column == entity_id, kind.meta_model.field_slug == field_slug)
        .first()
    )
    if row is None:
        return default
    return decode_value(row[0])


def insert_meta(db: Session, kind: EntityKind, entity_id: int, values: Dict[str, Any]) -> List[Any]:
    rows = [
        kind.meta_model(**{kind.meta_fk: entity_id, "field_slug": field_slug, "value": encode_value(value)})
        for field_slug, value in values.items()
    ]
    if rows:
        db.add_all(rows)
        db.flush()
    return rows


def upsert_meta(db: Session, kind: EntityKind, entity_id: int, field_slug: str, value: Any) -> None:
    encoded = encode_value(value)
    upsert(
        db,
        kind.meta_model,
        {kind.meta_fk: entity_id, "field_slug": field_slug, "value": encoded},
        conflict_columns=(kind.meta_fk, "field_slug"),
        update_values={"value": encoded},
    )


def delete_meta(db: Session, kind: EntityKind, entity_id: int) -> int:
    return (
        db.query(kind.meta_model)
        .filter(kind.meta_fk_column == entity_id)
        .delete(synchronize_session=False)
    )
