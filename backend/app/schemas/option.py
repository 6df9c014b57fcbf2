"""Option 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class OptionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=191)
    value: Any = None
    autoload: bool = False


class OptionUpdate(BaseModel):
    value: Any = None
    autoload: Optional[bool] = None


class OptionOut(BaseModel):
    id: int
    name: str
    value: Any = None
    autoload: bool
    created_at: datetime
    updated_at: datetime


class OptionListOut(BaseModel):
    items: List[OptionOut]
    total: int
    total_current: int
    limit: int
    offset: int
