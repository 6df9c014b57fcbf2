"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from app.models.user import User, UserMeta
from app.models.post_type import PostType, PostTypeField, Taxonomy, TaxonomyField
from app.models.post import Post, PostMeta, PostRevision, PostAuthor
from app.models.term import Term, TermMeta, TermRevision, TermAuthor, TermRelationship
from app.models.option import Option

__all__ = [
    "User", "UserMeta",
    "PostType", "PostTypeField", "Taxonomy", "TaxonomyField",
    "Post", "PostMeta", "PostRevision", "PostAuthor",
    "Term", "TermMeta", "TermRevision", "TermAuthor", "TermRelationship",
    "Option",
]
