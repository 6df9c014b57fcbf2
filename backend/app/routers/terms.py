"""Terms 기능 API 라우터입니다. 분류(taxonomy)별 용어 목록/조회/생성/수정/삭제를 엔티티 서비스로 위임합니다."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_actor, get_hooks
from app.routers.posts import list_query_params
from app.schemas.entity import EntityListOut, EntityOut, RevisionOut
from app.services import entity_service
from app.services.hooks import HookRegistry
from app.services.query_compiler import ListQuery
from app.utils.permissions import Actor

router = APIRouter(prefix="/api/terms", tags=["terms"])


@router.get("/{post_type}/{taxonomy}", response_model=EntityListOut)
def list_terms(
    post_type: str,
    taxonomy: str,
    parent_id: Optional[int] = None,
    request: ListQuery = Depends(list_query_params),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.term_target(db, post_type, taxonomy)
    if parent_id is not None:
        request.filters = {**(request.filters or {}), "parent_id": parent_id}
    return entity_service.list_entities(db, target, actor, request, hooks)


@router.post("/{post_type}/{taxonomy}", response_model=EntityOut)
def create_term(
    post_type: str,
    taxonomy: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.term_target(db, post_type, taxonomy)
    return entity_service.create_entity(db, target, actor, payload, hooks)


@router.get("/{post_type}/{taxonomy}/{id_or_slug}", response_model=EntityOut)
def get_term(
    post_type: str,
    taxonomy: str,
    id_or_slug: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.term_target(db, post_type, taxonomy)
    return entity_service.get_entity(db, target, actor, id_or_slug, hooks)


@router.patch("/{post_type}/{taxonomy}/{id_or_slug}", response_model=EntityOut)
def update_term(
    post_type: str,
    taxonomy: str,
    id_or_slug: str,
    payload: Dict[str, Any] = Body(...),
    comment: Optional[str] = Query(None, max_length=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.term_target(db, post_type, taxonomy)
    return entity_service.update_entity(db, target, actor, id_or_slug, payload, hooks, comment=comment)


@router.delete("/{post_type}/{taxonomy}/{id_or_slug}", response_model=EntityOut)
def delete_term(
    post_type: str,
    taxonomy: str,
    id_or_slug: str,
    permanently: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    hooks: HookRegistry = Depends(get_hooks),
):
    target = entity_service.term_target(db, post_type, taxonomy)
    return entity_service.delete_entity(db, target, actor, id_or_slug, hooks, permanently=permanently)


@router.get("/{post_type}/{taxonomy}/{id_or_slug}/revisions", response_model=List[RevisionOut])
def list_term_revisions(
    post_type: str,
    taxonomy: str,
    id_or_slug: str,
    field: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    target = entity_service.term_target(db, post_type, taxonomy)
    return entity_service.list_entity_revisions(db, target, actor, id_or_slug, field_slug=field)
