# User 도메인 모델 (Beanie Document)
# - 이름, 이메일, 사용자명, 비밀번호 해시, 아바타/커버 이미지 URL
# - refresh 토큰, 시청 기록(영상 id 목록), 생성/수정 시각
# - 이메일/사용자명은 unique 인덱스

from datetime import datetime
from typing import List, Optional
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

class User(Document):
    full_name: Indexed(str)
    email: Indexed(str, unique=True)  # 중복 방지 인덱스
    username: Indexed(str, unique=True)  # 항상 소문자로 저장
    password: str = Field(repr=False)  # bcrypt 해시
    avatar: str
    cover_image: str = ""
    refresh_token: Optional[str] = Field(default=None, repr=False)
    watch_history: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"  # 컬렉션명
