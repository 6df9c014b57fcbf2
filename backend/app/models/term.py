"""Term 엔티티와 Post-Term 관계의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from app.database import Base
from app.utils.helpers import utcnow


class Term(Base):
    __tablename__ = "terms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)
    slug = Column(String(200))
    status = Column(String(30), nullable=False, default="draft")
    taxonomy_slug = Column(String(100), nullable=False)
    taxonomy_id = Column(Integer, ForeignKey("taxonomies.id", ondelete="SET NULL"), nullable=True)
    post_type_slug = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("post_type_slug", "taxonomy_slug", "slug", name="uq_terms_scope_slug"),
        Index("idx_terms_scope_status", "post_type_slug", "taxonomy_slug", "status"),
    )


class TermMeta(Base):
    __tablename__ = "term_meta"

    id = Column(Integer, primary_key=True, autoincrement=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    field_slug = Column(String(100), nullable=False)
    value = Column(Text)  # JSON

    __table_args__ = (
        UniqueConstraint("term_id", "field_slug", name="uq_term_meta_term_field"),
        Index("idx_term_meta_field", "field_slug"),
    )


class TermRevision(Base):
    __tablename__ = "term_revisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    field_slug = Column(String(100), nullable=False)
    value = Column(Text)  # JSON
    author_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    comment = Column(String(255))
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_term_revisions_term_field", "term_id", "field_slug", "id"),
    )


class TermAuthor(Base):
    __tablename__ = "term_authors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("term_id", "user_id", name="uq_term_authors_term_user"),
        Index("idx_term_authors_user", "user_id"),
    )


class TermRelationship(Base):
    __tablename__ = "term_relationships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "term_id", name="uq_term_relationships_post_term"),
        Index("idx_term_relationships_term", "term_id"),
    )
