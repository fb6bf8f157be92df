# 구독 관계 모델
# - subscriber가 channel(다른 사용자)을 구독한다
# - 이 서비스에서는 채널 프로필 집계에서 읽기만 한다

from datetime import datetime
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

class Subscription(Document):
    subscriber: Indexed(PydanticObjectId)
    channel: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "subscriptions"
