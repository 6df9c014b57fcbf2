"""사번 로그인과 JWT 액세스 토큰 발급, 로그인 사용자 정보 조회를 담당합니다."""

from datetime import timedelta
from typing import Any, Dict

from jose import jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.schemas.user import UserOut
from app.utils.errors import NotAuthenticated
from app.utils.helpers import utcnow
from app.utils.permissions import capabilities_for_role

ALGORITHM = "HS256"


def issue_token(user: User) -> str:
    expires_at = utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(user.user_id), "role": user.role, "exp": expires_at}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


def find_active_user(db: Session, emp_id: str) -> User:
    user = db.query(User).filter(User.emp_id == emp_id.strip(), User.is_active.is_(True)).first()
    if user is None:
        raise NotAuthenticated(f"사번 '{emp_id}'에 해당하는 활성 사용자가 없습니다.")
    return user


def login(db: Session, emp_id: str) -> Dict[str, Any]:
    user = find_active_user(db, emp_id)
    return {
        "access_token": issue_token(user),
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": UserOut.model_validate(user),
    }


def describe_user(user: User) -> Dict[str, Any]:
    """로그인 사용자 정보에 역할이 부여하는 capability 목록을 덧붙인다."""
    return {
        "user_id": user.user_id,
        "emp_id": user.emp_id,
        "name": user.name,
        "role": user.role,
        "email": user.email,
        "is_active": user.is_active,
        "created_at": user.created_at,
        "capabilities": sorted(capabilities_for_role(user.role)),
    }
