"""Option Service 도메인 서비스 레이어입니다. 사이트 설정 key/value 조회와 변경을 담당합니다."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.option import Option
from app.schemas.option import OptionCreate, OptionUpdate
from app.services.meta_store import decode_value, encode_value
from app.services.query_compiler import resolve_pagination
from app.utils.errors import NotFound, PermissionDenied, ValidationFailed
from app.utils.helpers import utcnow
from app.utils.permissions import Actor

logger = logging.getLogger(__name__)

READ_OPTIONS = ("read", "read_option")
MANAGE_OPTIONS = ("manage_options",)
CORE_FIELDS = ("id", "name", "value", "autoload", "created_at", "updated_at")


def _to_response(row: Option) -> Dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "value": decode_value(row.value),
        "autoload": bool(row.autoload),
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def _find(db: Session, id_or_name: str) -> Option:
    query = db.query(Option)
    text = str(id_or_name).strip()
    row = None
    if text.isdigit():
        row = query.filter(Option.id == int(text)).first()
    if row is None:
        row = query.filter(Option.name == text).first()
    if row is None:
        raise NotFound("옵션을 찾을 수 없습니다.")
    return row


def _require(actor: Actor, capabilities) -> None:
    if not actor.can_one_of(capabilities):
        raise PermissionDenied("옵션에 대한 권한이 없습니다.")


def list_options(
    db: Session,
    actor: Actor,
    search: Optional[str] = None,
    searchable: Optional[List[str]] = None,
    order_by: str = "id",
    sort: str = "desc",
    limit: Optional[int] = None,
    offset: int = 0,
) -> Dict[str, Any]:
    if not actor.can_one_of(READ_OPTIONS):
        return {"items": [], "total": 0, "total_current": 0, "limit": 0, "offset": 0}

    if order_by not in CORE_FIELDS:
        raise ValidationFailed(f"정렬할 수 없는 필드입니다: {order_by}")
    direction = str(sort or "desc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationFailed("sort는 asc 또는 desc만 허용됩니다.")
    limit, offset = resolve_pagination(limit, offset)

    query = db.query(Option)
    total = query.count()
    if search:
        columns = [name for name in (searchable or ["name", "value"]) if name in CORE_FIELDS]
        if columns:
            query = query.filter(or_(*[getattr(Option, name).like(f"%{search}%") for name in columns]))
    total_current = query.count()

    column = getattr(Option, order_by)
    ordering = [column.asc(), Option.id.asc()] if direction == "asc" else [column.desc(), Option.id.desc()]
    rows = query.order_by(*ordering).limit(limit).offset(offset).all()
    return {
        "items": [_to_response(row) for row in rows],
        "total": total,
        "total_current": total_current,
        "limit": limit,
        "offset": offset,
    }


def get_option(db: Session, actor: Actor, id_or_name: str) -> Dict[str, Any]:
    _require(actor, READ_OPTIONS)
    return _to_response(_find(db, id_or_name))


def create_option(db: Session, actor: Actor, data: OptionCreate) -> Dict[str, Any]:
    _require(actor, MANAGE_OPTIONS)
    name = data.name.strip()
    if db.query(Option.id).filter(Option.name == name).first():
        raise ValidationFailed("이미 존재하는 옵션입니다.")
    row = Option(name=name, value=encode_value(data.value), autoload=data.autoload)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed("이미 존재하는 옵션입니다.")
    db.refresh(row)
    return _to_response(row)


def update_option(db: Session, actor: Actor, id_or_name: str, data: OptionUpdate) -> Dict[str, Any]:
    _require(actor, MANAGE_OPTIONS)
    row = _find(db, id_or_name)
    changes = data.model_dump(exclude_unset=True)
    if "value" in changes:
        row.value = encode_value(changes["value"])
    if changes.get("autoload") is not None:
        row.autoload = changes["autoload"]
    row.updated_at = utcnow()
    db.commit()
    db.refresh(row)
    return _to_response(row)


def delete_option(db: Session, actor: Actor, id_or_name: str) -> Dict[str, Any]:
    _require(actor, MANAGE_OPTIONS)
    row = _find(db, id_or_name)
    deleted = _to_response(row)
    db.delete(row)
    db.commit()
    logger.info("[options] deleted option %s", deleted["name"])
    return deleted
