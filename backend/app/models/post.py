"""Post 엔티티(코어 행/메타/리비전/작성자)의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from app.database import Base
from app.utils.helpers import utcnow


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(200))
    status = Column(String(30), nullable=False, default="draft")  # draft/published/archived/inherit
    post_type_slug = Column(String(100), nullable=False)
    post_type_id = Column(Integer, ForeignKey("post_types.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("post_type_slug", "slug", name="uq_posts_type_slug"),
        Index("idx_posts_type_status", "post_type_slug", "status"),
    )


class PostMeta(Base):
    __tablename__ = "post_meta"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    field_slug = Column(String(100), nullable=False)
    value = Column(Text)  # JSON

    __table_args__ = (
        UniqueConstraint("post_id", "field_slug", name="uq_post_meta_post_field"),
        Index("idx_post_meta_field", "field_slug"),
    )


class PostRevision(Base):
    __tablename__ = "post_revisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    field_slug = Column(String(100), nullable=False)
    value = Column(Text)  # JSON
    author_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    comment = Column(String(255))
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_post_revisions_post_field", "post_id", "field_slug", "id"),
    )


class PostAuthor(Base):
    __tablename__ = "post_authors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_authors_post_user"),
        Index("idx_post_authors_user", "user_id"),
    )
