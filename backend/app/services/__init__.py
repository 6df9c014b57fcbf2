"""서비스 레이어 패키지 초기화 모듈입니다."""

from app.services import (
    auth_service,
    registry_service,
    entity_service,
    option_service,
    user_service,
)
