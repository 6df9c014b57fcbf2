"""사번 로그인과 로그인 사용자 정보(/me) API 라우터입니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.user import LoginRequest, MeOut, TokenResponse
from app.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    return auth_service.login(db, body.emp_id)


@router.get("/me", response_model=MeOut)
def me(current_user: User = Depends(get_current_user)):
    return auth_service.describe_user(current_user)
