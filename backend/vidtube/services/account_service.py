# 계정 서비스 레이어
# - 현재 사용자 조회, 이름/이메일 수정
# - 아바타 / 커버 이미지 교체
# - 채널 프로필, 시청 기록 조회

import logging
from typing import List, Optional

from fastapi import Depends

from ..core.exceptions import ApiError
from ..repositories.user_repository import UserRepository, get_user_repository
from ..schemas.user_schema import (
    ChannelProfile,
    UpdateDetailsRequest,
    UserPublic,
    WatchHistoryItem,
    is_valid_email,
)
from .media_service import MediaUploader, get_media_uploader

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, repo: UserRepository, uploader: MediaUploader):
        self.repo = repo
        self.uploader = uploader

    async def current_user(self, user_id: str) -> UserPublic:
        user = await self.repo.get(user_id)
        if not user:
            raise ApiError.not_found("User does not exist")
        return UserPublic.model_validate(user)

    async def update_details(self, user_id: str, payload: UpdateDetailsRequest) -> UserPublic:
        if not (payload.full_name or "").strip() or not (payload.email or "").strip():
            raise ApiError.bad_request("Full name and email are required")
        email = payload.email.strip()
        if not is_valid_email(email):
            raise ApiError.bad_request("Invalid email address")

        owner = await self.repo.get_by_email(email)
        if owner and str(owner.id) != str(user_id):
            raise ApiError.conflict("Email is already in use")

        user = await self.repo.update_details(user_id, full_name=payload.full_name.strip(), email=email)
        if not user:
            raise ApiError.not_found("User does not exist")
        return UserPublic.model_validate(user)

    async def _replace_image(self, user_id: str, field: str, local_path: Optional[str], label: str) -> UserPublic:
        if not local_path:
            raise ApiError.bad_request(f"{label} file is missing")
        asset = await self.uploader.upload(local_path)
        if not asset or not asset.hosted_url:
            raise ApiError.bad_request(f"Error while uploading {label.lower()}")
        user = await self.repo.update_fields(user_id, **{field: asset.hosted_url})
        if not user:
            raise ApiError.not_found("User does not exist")
        logger.info(f"[AccountService] Updated {field} for user {user_id}")
        return UserPublic.model_validate(user)

    async def update_avatar(self, user_id: str, local_path: Optional[str]) -> UserPublic:
        return await self._replace_image(user_id, "avatar", local_path, "Avatar")

    async def update_cover_image(self, user_id: str, local_path: Optional[str]) -> UserPublic:
        return await self._replace_image(user_id, "cover_image", local_path, "Cover image")

    async def channel_profile(self, username: Optional[str], viewer_id: Optional[str]) -> ChannelProfile:
        if not username or not username.strip():
            raise ApiError.bad_request("Username is missing")
        row = await self.repo.channel_profile(username.strip().lower(), viewer_id)
        if not row:
            raise ApiError.not_found("Channel does not exist")
        return ChannelProfile.model_validate(row)

    async def watch_history(self, user_id: str) -> List[WatchHistoryItem]:
        rows = await self.repo.watch_history(user_id)
        return [WatchHistoryItem.model_validate(r) for r in rows]


def get_account_service(
    repo: UserRepository = Depends(get_user_repository),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> AccountService:
    return AccountService(repo, uploader)
