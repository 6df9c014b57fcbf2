"""User 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime


class UserBase(BaseModel):
    emp_id: str
    name: str
    role: str
    email: Optional[str] = None


class UserOut(UserBase):
    user_id: int
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserDetail(UserOut):
    meta: Dict[str, Any] = {}


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class UserListOut(BaseModel):
    items: List[UserOut]
    total: int
    limit: int
    offset: int


class LoginRequest(BaseModel):
    emp_id: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


class MeOut(UserOut):
    capabilities: List[str] = []
