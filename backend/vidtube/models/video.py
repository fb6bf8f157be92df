# 영상 모델
# - 시청 기록 집계에서 읽기만 한다 (업로드/관리는 다른 서비스 담당)

from datetime import datetime
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

class Video(Document):
    video_file: str
    thumbnail: str
    title: str
    description: str = ""
    duration: float = 0
    views: int = 0
    is_published: bool = True
    owner: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "videos"
