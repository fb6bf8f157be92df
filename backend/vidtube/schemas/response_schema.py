# 응답 봉투(envelope) 스키마
# - 성공: { statusCode, data, message, success }
# - 실패: { statusCode, data: null, message, success: false, errors }

from typing import Any, List
from pydantic import BaseModel, Field

from .user_schema import CamelModel

class ApiResponse(CamelModel):
    status_code: int
    data: Any = None
    message: str = "Success"
    success: bool = True

class ApiErrorResponse(ApiResponse):
    success: bool = False
    errors: List[Any] = Field(default_factory=list)

def envelope(data: Any, message: str = "Success", status_code: int = 200) -> dict:
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, mode="json")
    elif isinstance(data, list):
        data = [d.model_dump(by_alias=True, mode="json") if isinstance(d, BaseModel) else d for d in data]
    body = ApiResponse(status_code=status_code, data=data, message=message, success=status_code < 400)
    return body.model_dump(by_alias=True, mode="json")

def error_envelope(status_code: int, message: str, errors: List[Any] = None) -> dict:
    body = ApiErrorResponse(status_code=status_code, message=message, errors=errors or [])
    return body.model_dump(by_alias=True, mode="json")
