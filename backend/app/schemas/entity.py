"""Post/Term 엔티티 응답 계약을 위한 Pydantic 스키마입니다. 메타 필드는 타입마다 달라 extra로 허용합니다."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class EntityOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    slug: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class EntityListOut(BaseModel):
    items: List[EntityOut]
    total: int
    total_current: int
    total_drafts: int
    total_published: int
    total_trashed: int
    limit: int
    offset: int


class RevisionOut(BaseModel):
    id: int
    entity_id: int
    field_slug: str
    value: Any = None
    author_id: Optional[int] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
