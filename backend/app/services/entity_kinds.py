"""Post/Term 엔티티가 공유하는 엔진에 테이블 구성을 알려주는 디스크립터입니다."""

from dataclasses import dataclass
from typing import Any, Tuple

from app.models.post import Post, PostAuthor, PostMeta, PostRevision
from app.models.term import Term, TermAuthor, TermMeta, TermRevision
from app.models.user import User, UserMeta


@dataclass(frozen=True)
class EntityKind:
    name: str
    label: str
    model: Any
    meta_model: Any
    meta_fk: str
    revision_model: Any = None
    revision_fk: str = ""
    author_model: Any = None
    author_fk: str = ""
    pk: str = "id"
    core_fields: Tuple[str, ...] = ()
    # 수정 payload에서 코어 컬럼으로 분리되는 키
    writable_fields: Tuple[str, ...] = ()
    # payload에 있어도 무시되는 키(메타로 저장하지 않음)
    reserved_fields: Tuple[str, ...] = ()
    has_relationships: bool = False

    @property
    def pk_column(self):
        return getattr(self.model, self.pk)

    @property
    def meta_fk_column(self):
        return getattr(self.meta_model, self.meta_fk)

    @property
    def revision_fk_column(self):
        return getattr(self.revision_model, self.revision_fk)

    @property
    def author_fk_column(self):
        return getattr(self.author_model, self.author_fk)

    def column(self, name: str):
        return getattr(self.model, name)

    def row_to_dict(self, row) -> dict:
        return {name: getattr(row, name) for name in self.core_fields}


POSTS = EntityKind(
    name="posts",
    label="게시물",
    model=Post,
    meta_model=PostMeta,
    meta_fk="post_id",
    revision_model=PostRevision,
    revision_fk="post_id",
    author_model=PostAuthor,
    author_fk="post_id",
    core_fields=(
        "id", "slug", "status", "post_type_slug", "post_type_id", "created_at", "updated_at", "deleted_at",
    ),
    writable_fields=("slug", "status", "deleted_at"),
    reserved_fields=("id", "post_type_slug", "post_type_id", "created_at", "updated_at", "terms"),
    has_relationships=True,
)

TERMS = EntityKind(
    name="terms",
    label="용어",
    model=Term,
    meta_model=TermMeta,
    meta_fk="term_id",
    revision_model=TermRevision,
    revision_fk="term_id",
    author_model=TermAuthor,
    author_fk="term_id",
    core_fields=(
        "id", "parent_id", "slug", "status", "taxonomy_slug", "taxonomy_id", "post_type_slug",
        "created_at", "updated_at", "deleted_at",
    ),
    writable_fields=("slug", "status", "parent_id", "deleted_at"),
    reserved_fields=("id", "taxonomy_slug", "taxonomy_id", "post_type_slug", "created_at", "updated_at", "post_count"),
)

USERS = EntityKind(
    name="users",
    label="사용자",
    model=User,
    meta_model=UserMeta,
    meta_fk="user_id",
    pk="user_id",
    core_fields=("user_id", "emp_id", "name", "email", "role", "is_active", "created_at"),
    writable_fields=("name", "email", "role"),
    reserved_fields=("user_id", "emp_id", "is_active", "created_at"),
)
