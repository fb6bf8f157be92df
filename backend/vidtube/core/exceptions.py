# 커스텀 예외 클래스 정의
# - API 에러는 ApiError 하나로 통일하고, 종류(ErrorKind)가 HTTP 상태 코드를 결정한다
# - 상태 코드 변환은 main.py의 예외 핸들러 한 곳에서만 일어난다

from enum import Enum
from typing import Any, List, Optional


class ErrorKind(Enum):
    """API 에러 종류. 값은 응답 상태 코드입니다."""
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL = 500

    @property
    def status_code(self) -> int:
        return self.value


class ApiError(Exception):
    """클라이언트에게 그대로 전달되는 에러

    Attributes:
        kind: 에러 종류 (상태 코드 결정)
        message: 응답 message 필드에 실리는 문구
        errors: 필드 검증 실패 등 부가 정보
    """
    def __init__(self, kind: ErrorKind, message: str, errors: Optional[List[Any]] = None):
        self.kind = kind
        self.message = message
        self.errors = errors or []
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @classmethod
    def bad_request(cls, message: str, errors: Optional[List[Any]] = None) -> "ApiError":
        return cls(ErrorKind.BAD_REQUEST, message, errors)

    @classmethod
    def unauthorized(cls, message: str) -> "ApiError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def not_found(cls, message: str) -> "ApiError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "ApiError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def internal(cls, message: str) -> "ApiError":
        return cls(ErrorKind.INTERNAL, message)


class MediaUploadError(Exception):
    """미디어 호스트(Cloudinary) 업로드 실패 시 발생하는 예외

    업로더 내부에서만 사용되며, 재시도가 모두 실패하면 업로더는 None을 돌려준다.

    Attributes:
        status_code: HTTP 상태 코드 (있는 경우)
        message: 에러 메시지
    """
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        super().__init__(f"[Cloudinary] 업로드 실패: {message}")
