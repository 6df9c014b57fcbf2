"""Post type / taxonomy 레지스트리 API 라우터입니다. 타입 정의 변경은 manage_types 권한이 필요합니다."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user, require_capability
from app.models.user import User
from app.schemas.post_type import FieldCreate, FieldOut, PostTypeCreate, PostTypeOut, TaxonomyCreate, TaxonomyOut
from app.services import registry_service

router = APIRouter(prefix="/api/post-types", tags=["post-types"])

manage_types = require_capability("manage_types")


@router.get("", response_model=List[PostTypeOut])
def list_post_types(db: Session = Depends(get_db), _current_user: User = Depends(get_current_user)):
    return registry_service.list_post_types(db)


@router.post("", response_model=PostTypeOut)
def create_post_type(
    data: PostTypeCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(manage_types),
):
    return registry_service.create_post_type(db, data)


@router.get("/{post_type}", response_model=PostTypeOut)
def get_post_type(post_type: str, db: Session = Depends(get_db), _current_user: User = Depends(get_current_user)):
    return registry_service.get_post_type(db, post_type)


@router.post("/{post_type}/fields", response_model=FieldOut)
def add_post_type_field(
    post_type: str,
    data: FieldCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(manage_types),
):
    return registry_service.add_post_type_field(db, post_type, data)


@router.get("/{post_type}/taxonomies", response_model=List[TaxonomyOut])
def list_taxonomies(post_type: str, db: Session = Depends(get_db), _current_user: User = Depends(get_current_user)):
    return registry_service.list_taxonomies(db, post_type)


@router.post("/{post_type}/taxonomies", response_model=TaxonomyOut)
def create_taxonomy(
    post_type: str,
    data: TaxonomyCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(manage_types),
):
    return registry_service.create_taxonomy(db, post_type, data)


@router.post("/{post_type}/taxonomies/{taxonomy}/fields", response_model=FieldOut)
def add_taxonomy_field(
    post_type: str,
    taxonomy: str,
    data: FieldCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(manage_types),
):
    return registry_service.add_taxonomy_field(db, post_type, taxonomy, data)
