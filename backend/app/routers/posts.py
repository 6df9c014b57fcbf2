"""Posts 기능 API 라우터입니다. 게시물 타입별 목록/조회/생성/수정/삭제를 엔티티 서비스로 위임합니다."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_actor, get_hooks
from app.schemas.entity import EntityListOut, EntityOut, RevisionOut
from app.services import entity_service
from app.services.hooks import HookRegistry
from app.services.query_compiler import ListQuery
from app.utils.errors import ValidationFailed
from app.utils.helpers import parse_json_param
from app.utils.permissions import Actor

router = APIRouter(prefix="/api/posts", tags=["posts"])


def list_query_params(
    status: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    order_by: str = Query("id", alias="orderBy"),
    sort: str = "desc",
    search: Optional[str] = None,
    searchable: Optional[str] = None,
    filters: Optional[str] = None,
    meta_query: Optional[str] = None,
    taxonomy_query: Optional[str] = None,
    trashed: bool = False,
) -> ListQuery:
    searchable_fields = parse_json_param(searchable, "searchable", ["slug"])
    if not isinstance(searchable_fields, list):
        raise ValidationFailed("'searchable' 파라미터는 배열이어야 합니다.")
    return ListQuery(
        status=status,
        filters=parse_json_param(filters, "filters", {}),
        meta_query=parse_json_param(meta_query, "meta_query", None),
        taxonomy_query=parse_json_param(taxonomy_query, "taxonomy_query", None),
        search=search,
        searchable=[str(item) for item in searchable_fields],
        trashed=trashed,
        order_by=order_by,
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.get("/{post_type}", response_model=EntityListOut)
def list_posts(
    post_type: str,
    request: ListQuery = Depends(list_query_params),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.post_target(db, post_type)
    return entity_service.list_entities(db, target, actor, request, hooks)


@router.post("/{post_type}", response_model=EntityOut)
def create_post(
    post_type: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.post_target(db, post_type)
    return entity_service.create_entity(db, target, actor, payload, hooks)


@router.get("/{post_type}/{id_or_slug}", response_model=EntityOut)
def get_post(
    post_type: str,
    id_or_slug: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.post_target(db, post_type)
    return entity_service.get_entity(db, target, actor, id_or_slug, hooks)


@router.patch("/{post_type}/{id_or_slug}", response_model=EntityOut)
def update_post(
    post_type: str,
    id_or_slug: str,
    payload: Dict[str, Any] = Body(...),
    comment: Optional[str] = Query(None, max_length=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.post_target(db, post_type)
    return entity_service.update_entity(db, target, actor, id_or_slug, payload, hooks, comment=comment)


@router.delete("/{post_type}/{id_or_slug}", response_model=EntityOut)
def delete_post(
    post_type: str,
    id_or_slug: str,
    permanently: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.post_target(db, post_type)
    return entity_service.delete_entity(db, target, actor, id_or_slug, hooks, permanently=permanently)


@router.get("/{post_type}/{id_or_slug}/revisions", response_model=List[RevisionOut])
def list_post_revisions(
    post_type: str,
    id_or_slug: str,
    field: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    target = entity_service.post_target(db, post_type)
    return entity_service.list_entity_revisions(db, target, actor, id_or_slug, field_slug=field)
