# 사용자 저장소 레이어
# - 데이터 접근(조회/생성/부분 수정/집계)만 담당 (서비스 로직 분리)
# - 수정은 바뀌는 필드만 $set/$unset 한다 (문서 전체 재검증 없이 저장)

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import Or, Set, Unset
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from ..core.exceptions import ApiError
from ..models.subscription import Subscription
from ..models.user import User
from ..models.video import Video

logger = logging.getLogger(__name__)

OWNER_FIELDS = ("full_name", "username", "avatar")
CHANNEL_FIELDS = (
    "full_name",
    "username",
    "subscribers_count",
    "channels_subscribed_to_count",
    "is_subscribed",
    "avatar",
    "cover_image",
    "email",
)


def to_object_id(value: Any) -> Optional[PydanticObjectId]:
    if value is None:
        return None
    try:
        return PydanticObjectId(str(value))
    except (InvalidId, TypeError, ValueError):
        return None


def channel_profile_pipeline(username: str, viewer_id: Optional[Any]) -> List[Dict[str, Any]]:
    """채널 프로필 집계 파이프라인.

    구독자 수(channel == 대상), 구독 중인 채널 수(subscriber == 대상),
    조회하는 사용자가 구독자 목록에 있는지를 계산하고 고정된 필드만 남긴다.
    """
    subscriptions = Subscription.Settings.name
    return [
        {"$match": {"username": username.lower()}},
        {
            "$lookup": {
                "from": subscriptions,
                "localField": "_id",
                "foreignField": "channel",
                "as": "subscribers",
            }
        },
        {
            "$lookup": {
                "from": subscriptions,
                "localField": "_id",
                "foreignField": "subscriber",
                "as": "subscribed_to",
            }
        },
        {
            "$addFields": {
                "subscribers_count": {"$size": "$subscribers"},
                "channels_subscribed_to_count": {"$size": "$subscribed_to"},
                "is_subscribed": {
                    "$cond": {
                        "if": {"$in": [to_object_id(viewer_id), "$subscribers.subscriber"]},
                        "then": True,
                        "else": False,
                    }
                },
            }
        },
        {"$project": {field: 1 for field in CHANNEL_FIELDS}},
    ]


def watch_history_pipeline(user_id: Any) -> List[Dict[str, Any]]:
    """시청 기록 집계 파이프라인.

    watch_history의 영상들을 펼치고, 각 영상의 owner를 공개 필드만 가진
    단일 객체로 바꾼다.
    """
    return [
        {"$match": {"_id": to_object_id(user_id)}},
        {
            "$lookup": {
                "from": Video.Settings.name,
                "localField": "watch_history",
                "foreignField": "_id",
                "as": "watch_history",
                "pipeline": [
                    {
                        "$lookup": {
                            "from": User.Settings.name,
                            "localField": "owner",
                            "foreignField": "_id",
                            "as": "owner",
                            "pipeline": [
                                {"$project": {field: 1 for field in OWNER_FIELDS}},
                            ],
                        }
                    },
                    {"$addFields": {"owner": {"$first": "$owner"}}},
                ],
            }
        },
    ]


class UserRepository:
    async def get(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await User.get(oid)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await User.find_one(User.email == email)

    async def find_by_email_or_username(self, email: Optional[str] = None, username: Optional[str] = None) -> Optional[User]:
        clauses = []
        if email:
            clauses.append(User.email == email)
        if username:
            clauses.append(User.username == username.lower())
        if not clauses:
            return None
        return await User.find_one(Or(*clauses))

    async def create(self, full_name: str, email: str, username: str, hashed_password: str,
                     avatar: str, cover_image: str = "") -> User:
        user = User(
            full_name=full_name,
            email=email,
            username=username.lower(),
            password=hashed_password,
            avatar=avatar,
            cover_image=cover_image,
        )
        try:
            return await user.insert()
        except DuplicateKeyError:
            # 중복 체크와 insert 사이에 다른 요청이 끼어든 경우
            raise ApiError.conflict("User already exists")

    async def update_fields(self, user_id: str, **fields: Any) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        changes = {**fields, "updated_at": datetime.utcnow()}
        return await User.find_one(User.id == oid).update(
            Set(changes),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )

    async def set_refresh_token(self, user_id: str, refresh_token: str) -> Optional[User]:
        return await self.update_fields(user_id, refresh_token=refresh_token)

    async def clear_refresh_token(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await User.find_one(User.id == oid).update(
            Unset({"refresh_token": 1}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )

    async def set_password(self, user_id: str, hashed_password: str) -> Optional[User]:
        return await self.update_fields(user_id, password=hashed_password)

    async def update_details(self, user_id: str, full_name: str, email: str) -> Optional[User]:
        try:
            return await self.update_fields(user_id, full_name=full_name, email=email)
        except DuplicateKeyError:
            raise ApiError.conflict("Email is already in use")

    async def channel_profile(self, username: str, viewer_id: Optional[str]) -> Optional[Dict[str, Any]]:
        rows = await User.aggregate(channel_profile_pipeline(username, viewer_id)).to_list()
        return rows[0] if rows else None

    async def watch_history(self, user_id: str) -> List[Dict[str, Any]]:
        rows = await User.aggregate(watch_history_pipeline(user_id)).to_list()
        if not rows:
            return []
        return rows[0].get("watch_history", [])


def get_user_repository() -> UserRepository:
    return UserRepository()
