"""Users 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.user import UserDetail, UserListOut, UserUpdate
from app.services import user_service
from app.utils.permissions import actor_for

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListOut)
def list_users(
    search: Optional[str] = Query(None, max_length=100),
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.list_users(
        db, actor_for(current_user), search=search, limit=limit, offset=offset, include_inactive=include_inactive
    )


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.get_user(db, actor_for(current_user), user_id)


@router.patch("/{user_id}", response_model=UserDetail)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.update_user(db, actor_for(current_user), user_id, data)
