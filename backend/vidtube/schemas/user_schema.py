# 요청/응답 스키마 정의 (Pydantic 모델)
# - DB 필드는 snake_case, API 본문은 camelCase (fullName, coverImage, ...)
# - 응답 스키마에는 password / refresh_token 필드가 아예 없다

import re
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}$")

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))

def _as_str(value: Any) -> Any:
    # ObjectId / PydanticObjectId -> str
    return value if value is None or isinstance(value, str) else str(value)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---- 요청 ----
# 필수 여부 검사는 서비스 레이어에서 한다 (에러 문구를 엔드포인트별로 정하기 위함)

class RegisterRequest(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

class LoginRequest(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None

class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None

class UpdateDetailsRequest(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


# ---- 응답 ----

class UserPublic(CamelModel):
    id: str = Field(alias="_id")
    full_name: str
    email: str
    username: str
    avatar: str
    cover_image: str = ""
    watch_history: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return _as_str(v)

    @field_validator("watch_history", mode="before")
    @classmethod
    def _ids_to_str(cls, v):
        return [_as_str(i) for i in (v or [])]

class TokenPair(CamelModel):
    access_token: str
    refresh_token: str

class LoginResult(CamelModel):
    user: UserPublic
    access_token: str
    refresh_token: str

class ChannelProfile(CamelModel):
    id: str = Field(alias="_id")
    full_name: str
    username: str
    email: str
    avatar: str
    cover_image: str = ""
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return _as_str(v)

class OwnerSummary(CamelModel):
    id: str = Field(alias="_id")
    full_name: str
    username: str
    avatar: str

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return _as_str(v)

class WatchHistoryItem(CamelModel):
    id: str = Field(alias="_id")
    video_file: str = ""
    thumbnail: str = ""
    title: str = ""
    description: str = ""
    duration: float = 0
    views: int = 0
    is_published: bool = True
    owner: Optional[OwnerSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return _as_str(v)
