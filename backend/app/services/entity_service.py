"""Post/Term 공용 엔티티 서비스 레이어입니다. 권한 판정, 목록/단건 조회, 생성/수정/삭제 흐름을 캡슐화합니다."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services import meta_store, ownership_store, relationship_store, revision_store
from app.services import registry_service
from app.services.entity_kinds import POSTS, TERMS, EntityKind
from app.services.hooks import (
    EVENT_BEFORE_DELETE,
    EVENT_DELETE,
    EVENT_EDIT,
    EVENT_INSERT,
    EVENT_PUBLISH,
    EVENT_SAVE,
    EVENT_TRANSITION_STATUS,
    EVENT_TRASH,
    EVENT_UNTRASH,
    HookContext,
    HookRegistry,
    type_key,
)
from app.services.query_compiler import ListQuery, run_list
from app.services.registry_service import TypeDescriptor
from app.utils import permissions
from app.utils.errors import NotFound, PermissionDenied, StorageError, ValidationFailed
from app.utils.helpers import normalize_slug, remove_upload, utcnow
from app.utils.permissions import Actor

logger = logging.getLogger(__name__)

ATTACHMENT_TYPE = "attachments"
AUTHORS_FIELD = "authors"


@dataclass(frozen=True)
class RouteCaps:
    list: Tuple[str, ...]
    read: Tuple[str, ...]
    create: Tuple[str, ...]
    edit: Tuple[str, ...]
    delete: Tuple[str, ...]


POST_ROUTE_CAPS = RouteCaps(
    list=permissions.READ_LIST_POSTS,
    read=permissions.READ_POST,
    create=permissions.CREATE_POSTS,
    edit=permissions.EDIT_POSTS,
    delete=permissions.DELETE_POSTS,
)
TERM_ROUTE_CAPS = RouteCaps(
    list=permissions.READ_LIST_TERMS,
    read=permissions.READ_TERM,
    create=permissions.CREATE_TERMS,
    edit=permissions.EDIT_TERMS,
    delete=permissions.DELETE_TERMS,
)


@dataclass(frozen=True)
class EntityTarget:
    kind: EntityKind
    type: TypeDescriptor
    scope: Dict[str, Any]
    defaults: Dict[str, Any]
    caps: RouteCaps
    hook_key: str = ""
    label: str = field(default="")


def post_target(db: Session, post_type: str) -> EntityTarget:
    descriptor = registry_service.resolve_post_type(db, post_type)
    if descriptor is None:
        raise NotFound("게시물 타입을 찾을 수 없습니다.")
    return EntityTarget(
        kind=POSTS,
        type=descriptor,
        scope={"post_type_slug": descriptor.slug},
        defaults={"post_type_slug": descriptor.slug, "post_type_id": descriptor.id},
        caps=POST_ROUTE_CAPS,
        hook_key=type_key(POSTS.name, descriptor.slug),
        label=POSTS.label,
    )


def term_target(db: Session, post_type: str, taxonomy: str) -> EntityTarget:
    descriptor = registry_service.resolve_taxonomy(db, post_type, taxonomy)
    if descriptor is None:
        raise NotFound("분류를 찾을 수 없습니다.")
    return EntityTarget(
        kind=TERMS,
        type=descriptor,
        scope={"post_type_slug": post_type, "taxonomy_slug": descriptor.slug},
        defaults={"post_type_slug": post_type, "taxonomy_slug": descriptor.slug, "taxonomy_id": descriptor.id},
        caps=TERM_ROUTE_CAPS,
        hook_key=type_key(TERMS.name, post_type, descriptor.slug),
        label=TERMS.label,
    )


# ------------------------------------------------------------------
# 공용 헬퍼
# ------------------------------------------------------------------

def _context(target: EntityTarget, actor: Actor, comment: Optional[str] = None) -> HookContext:
    return HookContext(kind=target.kind.name, type_key=target.hook_key, actor=actor, comment=comment)


def _has_type_access(actor: Actor, target: EntityTarget, route_caps: Tuple[str, ...]) -> bool:
    return permissions.can_access_type(actor, route_caps, target.type.capabilities)


def _authorize(db: Session, target: EntityTarget, actor: Actor, route_caps: Tuple[str, ...], entity_id: int) -> None:
    if _has_type_access(actor, target, route_caps):
        return
    if ownership_store.is_owner(db, target.kind, entity_id, actor.user_id):
        return
    raise PermissionDenied("권한이 없습니다.")


def _scoped_query(db: Session, target: EntityTarget):
    kind = target.kind
    return db.query(kind.model).filter(*[kind.column(name) == value for name, value in target.scope.items()])


def find_entity(db: Session, target: EntityTarget, id_or_slug: Any):
    kind = target.kind
    query = _scoped_query(db, target)
    text = str(id_or_slug).strip()
    if text.isdigit():
        row = query.filter(kind.pk_column == int(text)).first()
        if row:
            return row
    row = query.filter(kind.model.slug == text).order_by(kind.pk_column.asc()).first()
    if not row:
        raise NotFound(f"{target.label}을(를) 찾을 수 없습니다.")
    return row


def _unique_slug(db: Session, target: EntityTarget, slug: str, exclude_id: Optional[int] = None) -> str:
    kind = target.kind
    candidate = slug
    suffix = 2
    while True:
        query = _scoped_query(db, target).filter(kind.model.slug == candidate)
        if exclude_id is not None:
            query = query.filter(kind.pk_column != exclude_id)
        if query.first() is None:
            return candidate
        candidate = f"{slug}-{suffix}"
        suffix += 1


def _validate_parent(db: Session, target: EntityTarget, parent_id: Any, self_id: Optional[int] = None) -> Optional[int]:
    if parent_id in (None, "", 0):
        return None
    try:
        parent_id = int(parent_id)
    except (TypeError, ValueError):
        raise ValidationFailed("parent_id는 정수여야 합니다.")
    if self_id is not None and parent_id == self_id:
        raise ValidationFailed("자기 자신을 상위 항목으로 지정할 수 없습니다.")
    if _scoped_query(db, target).filter(target.kind.pk_column == parent_id).first() is None:
        raise ValidationFailed("상위 항목을 찾을 수 없습니다.")
    return parent_id


def _coerce_core(db: Session, target: EntityTarget, key: str, value: Any, self_id: Optional[int] = None) -> Any:
    if key == "slug":
        slug = normalize_slug(value)
        if not slug:
            raise ValidationFailed("slug는 비워둘 수 없습니다.")
        return _unique_slug(db, target, slug, exclude_id=self_id)
    if key == "status":
        status = str(value or "").strip()
        if not status:
            raise ValidationFailed("status는 비워둘 수 없습니다.")
        return status
    if key == "parent_id":
        return _validate_parent(db, target, value, self_id=self_id)
    if key == "deleted_at":
        return utcnow() if value else None
    return value


def _run_in_transaction(db: Session, work: Callable[[], Any]) -> Any:
    try:
        result = work()
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("[entity] transaction rolled back: %s", exc)
        raise StorageError() from exc
    return result


def serialize_many(
    db: Session,
    target: EntityTarget,
    rows: List[Any],
    hooks: HookRegistry,
    ctx: HookContext,
) -> List[Dict[str, Any]]:
    kind = target.kind
    ids = [getattr(row, kind.pk) for row in rows]
    metas = meta_store.get_meta(db, kind, ids)
    grouped_terms = relationship_store.list_terms_by_posts(db, ids) if kind.has_relationships else {}
    counts = relationship_store.post_counts(db, ids) if kind is TERMS else {}

    items = []
    for row, entity_id in zip(rows, ids):
        item = {**kind.row_to_dict(row), **metas.get(entity_id, {})}
        if kind.has_relationships:
            item["terms"] = grouped_terms.get(entity_id, {})
        if kind is TERMS:
            item["post_count"] = counts.get(entity_id, 0)
        items.append(hooks.transform(ctx, item))
    return items


def _serialize(db: Session, target: EntityTarget, row, hooks: HookRegistry, ctx: HookContext) -> Dict[str, Any]:
    return serialize_many(db, target, [row], hooks, ctx)[0]


def _split_payload(target: EntityTarget, payload: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    kind = target.kind
    core: Dict[str, Any] = {}
    meta: Dict[str, Any] = {}
    for key, value in payload.items():
        if key in kind.writable_fields:
            core[key] = value
        elif key in kind.reserved_fields or key in kind.core_fields:
            continue
        else:
            meta[key] = value
    return core, meta


def _term_ids(target: EntityTarget, payload: Dict[str, Any]) -> Optional[List[int]]:
    if not target.kind.has_relationships or "terms" not in payload:
        return None
    return relationship_store.resolve_term_ids(payload["terms"])


# ------------------------------------------------------------------
# 조회
# ------------------------------------------------------------------

def empty_list_response() -> Dict[str, Any]:
    return {
        "items": [],
        "total": 0,
        "total_current": 0,
        "total_drafts": 0,
        "total_published": 0,
        "total_trashed": 0,
        "limit": 0,
        "offset": 0,
    }


def list_entities(
    db: Session,
    target: EntityTarget,
    actor: Actor,
    request: ListQuery,
    hooks: HookRegistry,
) -> Dict[str, Any]:
    has_access = _has_type_access(actor, target, target.caps.list)
    if not has_access and actor.user_id is None:
        return empty_list_response()

    # 타입 권한이 없으면 본인이 작성자로 기록된 항목만 조회한다.
    owner_id = None if has_access else actor.user_id
    result = run_list(db, target.kind, target.scope, request, owner_id=owner_id)
    items = serialize_many(db, target, result.rows, hooks, _context(target, actor))
    return {
        "items": items,
        "total": result.total,
        "total_current": result.total_current,
        "total_drafts": result.total_drafts,
        "total_published": result.total_published,
        "total_trashed": result.total_trashed,
        "limit": result.limit,
        "offset": result.offset,
    }


def get_entity(
    db: Session,
    target: EntityTarget,
    actor: Actor,
    id_or_slug: Any,
    hooks: HookRegistry,
) -> Dict[str, Any]:
    row = find_entity(db, target, id_or_slug)
    _authorize(db, target, actor, target.caps.read, getattr(row, target.kind.pk))
    return _serialize(db, target, row, hooks, _context(target, actor))


def list_entity_revisions(
    db: Session,
    target: EntityTarget,
    actor: Actor,
    id_or_slug: Any,
    field_slug: Optional[str] = None,
) -> List[Dict[str, Any]]:
    row = find_entity(db, target, id_or_slug)
    entity_id = getattr(row, target.kind.pk)
    _authorize(db, target, actor, target.caps.read, entity_id)
    rows = revision_store.list_revisions(db, target.kind, entity_id, field_slug=field_slug)
    return [revision_store.to_response(target.kind, item) for item in rows]


# ------------------------------------------------------------------
# 변경
# ------------------------------------------------------------------

def create_entity(
    db: Session,
    target: EntityTarget,
    actor: Actor,
    payload: Dict[str, Any],
    hooks: HookRegistry,
) -> Dict[str, Any]:
    kind = target.kind
    if not _has_type_access(actor, target, target.caps.create):
        raise PermissionDenied("이 타입의 항목을 생성할 권한이 없습니다.")

    slug = normalize_slug(payload.get("slug") or payload.get("title"))
    if not slug:
        raise ValidationFailed("slug 또는 title이 필요합니다.")

    core, meta = _split_payload(target, payload)
    core.pop("deleted_at", None)
    core = {**target.defaults, **core, "slug": slug, "status": core.get("status") or "draft"}
    if target.type.has_field(AUTHORS_FIELD) and actor.user_id is not None:
        meta[AUTHORS_FIELD] = [actor.user_id]
    term_ids = _term_ids(target, payload)

    ctx = _context(target, actor)
    core, meta = hooks.before_insert(ctx, core, meta)
    core = {key: value for key, value in core.items() if key in kind.core_fields and key != kind.pk}

    def write():
        for key in ("slug", "status", "parent_id"):
            if key in core:
                core[key] = _coerce_core(db, target, key, core[key])
        row = kind.model(**core)
        db.add(row)
        db.flush()
        entity_id = getattr(row, kind.pk)
        meta_store.insert_meta(db, kind, entity_id, meta)
        if term_ids:
            relationship_store.replace_relationships(db, entity_id, term_ids)
        ownership_store.record_touch(db, kind, entity_id, actor.user_id)
        return row

    row = _run_in_transaction(db, write)
    db.refresh(row)
    entity = _serialize(db, target, row, hooks, ctx)

    hooks.emit(ctx, EVENT_SAVE, entity)
    hooks.emit(ctx, EVENT_INSERT, entity)
    if entity.get("status") == "published":
        hooks.emit(ctx, EVENT_PUBLISH, entity)
    return entity


def update_entity(
    db: Session,
    target: EntityTarget,
    actor: Actor,
    id_or_slug: Any,
    payload: Dict[str, Any],
    hooks: HookRegistry,
    comment: Optional[str] = None,
) -> Dict[str, Any]:
    kind = target.kind
    row = find_entity(db, target, id_or_slug)
    entity_id = getattr(row, kind.pk)
    _authorize(db, target, actor, target.caps.edit, entity_id)

    ctx = _context(target, actor, comment=comment)
    before = _serialize(db, target, row, hooks, ctx)

    core_updates, meta_updates = _split_payload(target, payload)
    if target.type.has_field(AUTHORS_FIELD) and actor.user_id is not None:
        authors = meta_store.get_meta_value(db, kind, entity_id, AUTHORS_FIELD, [])
        authors = list(authors) if isinstance(authors, list) else []
        if actor.user_id not in authors:
            authors.append(actor.user_id)
        meta_updates[AUTHORS_FIELD] = authors
    term_ids = _term_ids(target, payload)

    core_updates, meta_updates = hooks.before_update(ctx, before, core_updates, meta_updates)
    core_updates = {key: value for key, value in core_updates.items() if key in kind.writable_fields}

    def write():
        values = {key: _coerce_core(db, target, key, value, self_id=entity_id) for key, value in core_updates.items()}
        if values or meta_updates or term_ids is not None:
            # 메타만 바뀐 경우에도 updated_at은 갱신한다.
            values["updated_at"] = utcnow()
            db.query(kind.model).filter(kind.pk_column == entity_id).update(values, synchronize_session=False)

        for field_slug, value in meta_updates.items():
            meta_store.upsert_meta(db, kind, entity_id, field_slug, value)

        if term_ids is not None:
            relationship_store.replace_relationships(db, entity_id, term_ids)

        for field_slug in target.type.revisioned_fields:
            for source in (values, meta_updates):
                if field_slug not in source:
                    continue
                revision_store.capture_if_changed(
                    db,
                    kind,
                    entity_id=entity_id,
                    field_slug=field_slug,
                    new_value=source[field_slug],
                    author_id=actor.user_id,
                    comment=comment,
                )

        ownership_store.record_touch(db, kind, entity_id, actor.user_id)

    _run_in_transaction(db, write)
    db.refresh(row)
    entity = _serialize(db, target, row, hooks, ctx)

    hooks.emit(ctx, EVENT_EDIT, entity)
    hooks.emit(ctx, EVENT_SAVE, entity)
    if before.get("deleted_at") and not entity.get("deleted_at"):
        hooks.emit(ctx, EVENT_UNTRASH, entity)
    if before.get("status") != entity.get("status"):
        hooks.emit(ctx, EVENT_TRANSITION_STATUS, entity)
        if entity.get("status") == "published":
            hooks.emit(ctx, EVENT_PUBLISH, entity)
    return entity


def _remove_attachment_file(entity: Dict[str, Any]) -> None:
    file_meta = entity.get("file")
    path = file_meta.get("path") if isinstance(file_meta, dict) else None
    if not path:
        return
    try:
        remove_upload(str(path))
    except (ValidationFailed, OSError) as exc:
        logger.warning("[entity] attachment file not removed (%s): %s", path, exc)


def delete_entity(
    db: Session,
    target: EntityTarget,
    actor: Actor,
    id_or_slug: Any,
    hooks: HookRegistry,
    permanently: bool = False,
) -> Dict[str, Any]:
    kind = target.kind
    row = find_entity(db, target, id_or_slug)
    entity_id = getattr(row, kind.pk)
    _authorize(db, target, actor, target.caps.delete, entity_id)

    ctx = _context(target, actor)
    deleted = _serialize(db, target, row, hooks, ctx)

    if not hooks.before_delete(ctx, deleted):
        logger.warning("[entity] deletion of %s #%s aborted by hook", target.hook_key, entity_id)
        raise PermissionDenied("삭제가 중단되었습니다.")

    if not permanently:
        def trash():
            db.query(kind.model).filter(kind.pk_column == entity_id).update(
                {"deleted_at": utcnow()}, synchronize_session=False
            )

        _run_in_transaction(db, trash)
        hooks.emit(ctx, EVENT_TRASH, deleted)
        return deleted

    hooks.emit(ctx, EVENT_BEFORE_DELETE, deleted)

    def purge():
        meta_store.delete_meta(db, kind, entity_id)
        revision_store.delete_revisions(db, kind, entity_id)
        ownership_store.delete_owners(db, kind, entity_id)
        if kind is POSTS:
            relationship_store.delete_for_post(db, entity_id)
        if kind is TERMS:
            relationship_store.delete_for_term(db, entity_id)
            db.query(kind.model).filter(kind.model.parent_id == entity_id).update(
                {"parent_id": None}, synchronize_session=False
            )
        db.query(kind.model).filter(kind.pk_column == entity_id).delete(synchronize_session=False)

    _run_in_transaction(db, purge)
    if kind is POSTS and target.type.slug == ATTACHMENT_TYPE:
        _remove_attachment_file(deleted)
    logger.info("[entity] permanently deleted %s #%s", target.hook_key, entity_id)

    hooks.emit(ctx, EVENT_DELETE, deleted)
    return deleted
