from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from app.database import get_db
from app.models.user import User
from app.config import settings
from app.services.auth_service import ALGORITHM
from app.services.hooks import HookRegistry
from app.utils.permissions import Actor, actor_for

security = HTTPBearer()


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _active_user(db: Session, user_id) -> User | None:
    return db.query(User).filter(User.user_id == int(user_id), User.is_active == True).first()  # noqa: E712


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = _active_user(db, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def get_optional_user(
    credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer(auto_error=False)),
    db: Session = Depends(get_db),
):
    if credentials is None:
        return None
    try:
        payload = decode_token(credentials.credentials)
    except HTTPException:
        return None
    user_id = payload.get("sub")
    if user_id is None:
        return None
    return _active_user(db, user_id)


def get_actor(user: User | None = Depends(get_optional_user)) -> Actor:
    return actor_for(user)


def require_capability(*capabilities: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not actor_for(current_user).can_one_of(capabilities):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires capability: {', '.join(capabilities)}",
            )
        return current_user
    return checker


def get_hooks(request: Request) -> HookRegistry:
    return request.app.state.hooks
