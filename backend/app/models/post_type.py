"""Post type / taxonomy 및 필드 정의(타입 레지스트리) 모델입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Index, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base


class PostType(Base):
    __tablename__ = "post_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(100), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    capabilities = Column(Text)  # JSON list, 비어 있으면 기본 capability 사용
    created_at = Column(DateTime, server_default=func.now())


class PostTypeField(Base):
    __tablename__ = "post_type_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_type_slug = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    type = Column(String(30), nullable=False, default="text")
    revisions = Column(Boolean, default=False)
    order = Column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint("post_type_slug", "slug", name="uq_post_type_fields_type_slug"),
    )


class Taxonomy(Base):
    __tablename__ = "taxonomies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(100), nullable=False)
    post_type_slug = Column(String(100), nullable=False)
    name = Column(String(100), nullable=False)
    capabilities = Column(Text)  # JSON list
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("post_type_slug", "slug", name="uq_taxonomies_type_slug"),
    )


class TaxonomyField(Base):
    __tablename__ = "taxonomy_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_type_slug = Column(String(100), nullable=False)
    taxonomy_slug = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    type = Column(String(30), nullable=False, default="text")
    revisions = Column(Boolean, default=False)
    order = Column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint("post_type_slug", "taxonomy_slug", "slug", name="uq_taxonomy_fields_scope_slug"),
        Index("idx_taxonomy_fields_scope", "post_type_slug", "taxonomy_slug"),
    )
