"""User Service 도메인 서비스 레이어입니다. 사용자 목록/조회/수정과 사용자 메타 저장을 담당합니다."""

from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.user import UserUpdate
from app.services import meta_store
from app.services.entity_kinds import USERS
from app.services.query_compiler import resolve_pagination
from app.utils.errors import NotFound, PermissionDenied, StorageError, ValidationFailed
from app.utils.permissions import ALL_ROLES, Actor

LIST_USERS = ("list_users",)
EDIT_USERS = ("edit_users",)


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("사용자를 찾을 수 없습니다.")
    return user


def _detail(db: Session, user: User) -> Dict[str, Any]:
    meta = meta_store.get_meta(db, USERS, [user.user_id]).get(user.user_id, {})
    return {**USERS.row_to_dict(user), "meta": meta}


def list_users(
    db: Session,
    actor: Actor,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    include_inactive: bool = False,
) -> Dict[str, Any]:
    limit, offset = resolve_pagination(limit, offset)
    query = db.query(User)
    if not actor.can_one_of(LIST_USERS):
        query = query.filter(User.user_id == actor.user_id)
    if not include_inactive:
        query = query.filter(User.is_active == True)  # noqa: E712
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.like(pattern), User.emp_id.like(pattern), User.email.like(pattern)))
    total = query.count()
    items = query.order_by(User.user_id.asc()).limit(limit).offset(offset).all()
    return {"items": items, "total": total, "limit": limit, "offset": offset}


def get_user(db: Session, actor: Actor, user_id: int) -> Dict[str, Any]:
    if actor.user_id != user_id and not actor.can_one_of(LIST_USERS):
        raise PermissionDenied("사용자 정보를 조회할 권한이 없습니다.")
    return _detail(db, _get_user(db, user_id))


def update_user(db: Session, actor: Actor, user_id: int, data: UserUpdate) -> Dict[str, Any]:
    can_edit_users = actor.can_one_of(EDIT_USERS)
    if actor.user_id != user_id and not can_edit_users:
        raise PermissionDenied("사용자 정보를 수정할 권한이 없습니다.")
    user = _get_user(db, user_id)

    changes = data.model_dump(exclude_unset=True)
    meta = changes.pop("meta", None) or {}
    if "role" in changes:
        if not can_edit_users:
            raise PermissionDenied("역할 변경 권한이 없습니다.")
        if changes["role"] not in ALL_ROLES:
            raise ValidationFailed("유효하지 않은 역할입니다.")

    try:
        for key, value in changes.items():
            if key in USERS.writable_fields and value is not None:
                setattr(user, key, value)
        for field_slug, value in meta.items():
            meta_store.upsert_meta(db, USERS, user.user_id, field_slug, value)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError() from exc
    db.refresh(user)
    return _detail(db, user)
