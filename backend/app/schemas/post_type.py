"""Post type / taxonomy 레지스트리 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import List, Optional


class FieldCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=100)
    type: str = "text"
    revisions: bool = False
    order: int = 0


class FieldOut(FieldCreate):
    id: int

    model_config = {"from_attributes": True}


class PostTypeCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    capabilities: Optional[List[str]] = None
    fields: List[FieldCreate] = []


class PostTypeOut(BaseModel):
    id: int
    slug: str
    name: str
    capabilities: List[str]
    fields: List[FieldOut]


class TaxonomyCreate(PostTypeCreate):
    pass


class TaxonomyOut(PostTypeOut):
    post_type_slug: str
