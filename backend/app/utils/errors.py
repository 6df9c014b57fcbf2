"""엔티티 엔진에서 사용하는 HTTP 예외 분류입니다."""

from fastapi import HTTPException, status


class NotFound(HTTPException):
    def __init__(self, detail: str = "대상을 찾을 수 없습니다."):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class PermissionDenied(HTTPException):
    def __init__(self, detail: str = "권한이 없습니다."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ValidationFailed(HTTPException):
    def __init__(self, detail: str = "요청 값이 올바르지 않습니다."):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class StorageError(HTTPException):
    def __init__(self, detail: str = "저장소 처리 중 오류가 발생했습니다."):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class NotAuthenticated(HTTPException):
    def __init__(self, detail: str = "인증이 필요합니다."):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
