"""Post type / taxonomy 정의를 조회해 엔진이 사용하는 타입 디스크립터로 변환하는 레지스트리 서비스입니다."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models.post_type import PostType, PostTypeField, Taxonomy, TaxonomyField
from app.schemas.post_type import FieldCreate, PostTypeCreate, TaxonomyCreate
from app.utils.errors import NotFound, ValidationFailed
from app.utils.helpers import normalize_slug
from app.utils.permissions import POST_CAPABILITIES, TERM_CAPABILITIES


@dataclass(frozen=True)
class FieldDef:
    slug: str
    type: str = "text"
    revisions: bool = False


@dataclass(frozen=True)
class TypeDescriptor:
    id: int
    slug: str
    capabilities: Tuple[str, ...]
    fields: Tuple[FieldDef, ...] = field(default_factory=tuple)

    def has_field(self, slug: str) -> bool:
        return any(f.slug == slug for f in self.fields)

    @property
    def revisioned_fields(self) -> List[str]:
        return [f.slug for f in self.fields if f.revisions]


def _load_capabilities(raw: str | None, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not raw:
        return default
    try:
        caps = json.loads(raw)
    except json.JSONDecodeError:
        return default
    return tuple(str(c) for c in caps) if caps else default


def _field_defs(rows) -> Tuple[FieldDef, ...]:
    return tuple(FieldDef(slug=row.slug, type=row.type, revisions=bool(row.revisions)) for row in rows)


def _post_type_fields(db: Session, post_type_slug: str):
    return (
        db.query(PostTypeField)
        .filter(PostTypeField.post_type_slug == post_type_slug)
        .order_by(PostTypeField.order.asc(), PostTypeField.id.asc())
        .all()
    )


def _taxonomy_fields(db: Session, post_type_slug: str, taxonomy_slug: str):
    return (
        db.query(TaxonomyField)
        .filter(TaxonomyField.post_type_slug == post_type_slug, TaxonomyField.taxonomy_slug == taxonomy_slug)
        .order_by(TaxonomyField.order.asc(), TaxonomyField.id.asc())
        .all()
    )


def resolve_post_type(db: Session, slug: str) -> Optional[TypeDescriptor]:
    row = db.query(PostType).filter(PostType.slug == slug).first()
    if not row:
        return None
    return TypeDescriptor(
        id=row.id,
        slug=row.slug,
        capabilities=_load_capabilities(row.capabilities, POST_CAPABILITIES),
        fields=_field_defs(_post_type_fields(db, row.slug)),
    )


def resolve_taxonomy(db: Session, post_type_slug: str, taxonomy_slug: str) -> Optional[TypeDescriptor]:
    row = (
        db.query(Taxonomy)
        .filter(Taxonomy.post_type_slug == post_type_slug, Taxonomy.slug == taxonomy_slug)
        .first()
    )
    if not row:
        return None
    return TypeDescriptor(
        id=row.id,
        slug=row.slug,
        capabilities=_load_capabilities(row.capabilities, TERM_CAPABILITIES),
        fields=_field_defs(_taxonomy_fields(db, post_type_slug, row.slug)),
    )


def _post_type_response(db: Session, row: PostType) -> Dict[str, Any]:
    return {
        "id": row.id,
        "slug": row.slug,
        "name": row.name,
        "capabilities": list(_load_capabilities(row.capabilities, POST_CAPABILITIES)),
        "fields": _post_type_fields(db, row.slug),
    }


def _taxonomy_response(db: Session, row: Taxonomy) -> Dict[str, Any]:
    return {
        "id": row.id,
        "slug": row.slug,
        "name": row.name,
        "post_type_slug": row.post_type_slug,
        "capabilities": list(_load_capabilities(row.capabilities, TERM_CAPABILITIES)),
        "fields": _taxonomy_fields(db, row.post_type_slug, row.slug),
    }


def _get_post_type_row(db: Session, slug: str) -> PostType:
    row = db.query(PostType).filter(PostType.slug == slug).first()
    if not row:
        raise NotFound("게시물 타입을 찾을 수 없습니다.")
    return row


def list_post_types(db: Session) -> List[Dict[str, Any]]:
    rows = db.query(PostType).order_by(PostType.id.asc()).all()
    return [_post_type_response(db, row) for row in rows]


def get_post_type(db: Session, slug: str) -> Dict[str, Any]:
    return _post_type_response(db, _get_post_type_row(db, slug))


def create_post_type(db: Session, data: PostTypeCreate) -> Dict[str, Any]:
    slug = normalize_slug(data.slug)
    if not slug:
        raise ValidationFailed("유효한 slug가 필요합니다.")
    if db.query(PostType.id).filter(PostType.slug == slug).first():
        raise ValidationFailed("이미 존재하는 게시물 타입입니다.")

    row = PostType(
        slug=slug,
        name=data.name,
        capabilities=json.dumps(data.capabilities) if data.capabilities else None,
    )
    db.add(row)
    for item in data.fields:
        db.add(PostTypeField(post_type_slug=slug, **item.model_dump()))
    db.commit()
    db.refresh(row)
    return _post_type_response(db, row)


def add_post_type_field(db: Session, post_type_slug: str, data: FieldCreate) -> PostTypeField:
    _get_post_type_row(db, post_type_slug)
    exists = db.query(PostTypeField.id).filter(
        PostTypeField.post_type_slug == post_type_slug,
        PostTypeField.slug == data.slug,
    ).first()
    if exists:
        raise ValidationFailed("이미 존재하는 필드입니다.")
    row = PostTypeField(post_type_slug=post_type_slug, **data.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_taxonomies(db: Session, post_type_slug: str) -> List[Dict[str, Any]]:
    _get_post_type_row(db, post_type_slug)
    rows = (
        db.query(Taxonomy)
        .filter(Taxonomy.post_type_slug == post_type_slug)
        .order_by(Taxonomy.id.asc())
        .all()
    )
    return [_taxonomy_response(db, row) for row in rows]


def create_taxonomy(db: Session, post_type_slug: str, data: TaxonomyCreate) -> Dict[str, Any]:
    _get_post_type_row(db, post_type_slug)
    slug = normalize_slug(data.slug)
    if not slug:
        raise ValidationFailed("유효한 slug가 필요합니다.")
    exists = db.query(Taxonomy.id).filter(
        Taxonomy.post_type_slug == post_type_slug,
        Taxonomy.slug == slug,
    ).first()
    if exists:
        raise ValidationFailed("이미 존재하는 분류입니다.")

    row = Taxonomy(
        slug=slug,
        post_type_slug=post_type_slug,
        name=data.name,
        capabilities=json.dumps(data.capabilities) if data.capabilities else None,
    )
    db.add(row)
    for item in data.fields:
        db.add(TaxonomyField(post_type_slug=post_type_slug, taxonomy_slug=slug, **item.model_dump()))
    db.commit()
    db.refresh(row)
    return _taxonomy_response(db, row)


def add_taxonomy_field(db: Session, post_type_slug: str, taxonomy_slug: str, data: FieldCreate) -> TaxonomyField:
    if resolve_taxonomy(db, post_type_slug, taxonomy_slug) is None:
        raise NotFound("분류를 찾을 수 없습니다.")
    exists = db.query(TaxonomyField.id).filter(
        TaxonomyField.post_type_slug == post_type_slug,
        TaxonomyField.taxonomy_slug == taxonomy_slug,
        TaxonomyField.slug == data.slug,
    ).first()
    if exists:
        raise ValidationFailed("이미 존재하는 필드입니다.")
    row = TaxonomyField(post_type_slug=post_type_slug, taxonomy_slug=taxonomy_slug, **data.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
