# 인증 서비스 레이어
# - 회원가입 (필드 검증, 이메일/사용자명 중복 체크, 아바타 업로드)
# - 로그인 / 로그아웃
# - Access/Refresh 토큰 발급과 refresh 토큰 rotation
# - 비밀번호 변경

import logging
from typing import Optional

import jwt
from fastapi import Depends

from ..core.exceptions import ApiError
from ..core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    get_password_hash,
    verify_password,
)
from ..repositories.user_repository import UserRepository, get_user_repository
from ..schemas.user_schema import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResult,
    RegisterRequest,
    TokenPair,
    UserPublic,
    is_valid_email,
)
from .media_service import MediaUploader, get_media_uploader

logger = logging.getLogger(__name__)

def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class AuthService:
    def __init__(self, repo: UserRepository, uploader: MediaUploader):
        self.repo = repo
        self.uploader = uploader

    async def issue_token_pair(self, user_id: str) -> TokenPair:
        """토큰 쌍을 발급하고 refresh 토큰을 계정에 저장한다."""
        user = await self.repo.get(user_id)
        if not user:
            raise ApiError.not_found("User does not exist")
        access = create_access_token(str(user.id), user.email, user.username, user.full_name)
        refresh = create_refresh_token(str(user.id))
        await self.repo.set_refresh_token(str(user.id), refresh)
        return TokenPair(access_token=access, refresh_token=refresh)

    async def register(self, payload: RegisterRequest, avatar_path: Optional[str],
                       cover_image_path: Optional[str] = None) -> UserPublic:
        fields = [payload.full_name, payload.email, payload.username, payload.password]
        if any(_blank(f) for f in fields):
            raise ApiError.bad_request("All fields are required")
        email = payload.email.strip()
        username = payload.username.strip().lower()
        if not is_valid_email(email):
            raise ApiError.bad_request("Invalid email address")

        existing = await self.repo.find_by_email_or_username(email=email, username=username)
        if existing:
            raise ApiError.conflict("User already exists")

        if not avatar_path:
            raise ApiError.bad_request("Avatar is required")
        avatar = await self.uploader.upload(avatar_path)
        cover_image = await self.uploader.upload(cover_image_path)
        if not avatar or not avatar.hosted_url:
            raise ApiError.bad_request("Avatar is required")

        user = await self.repo.create(
            full_name=payload.full_name.strip(),
            email=email,
            username=username,
            hashed_password=get_password_hash(payload.password),
            avatar=avatar.hosted_url,
            cover_image=cover_image.hosted_url if cover_image else "",
        )
        created = await self.repo.get(str(user.id))
        if not created:
            raise ApiError.internal("Something went wrong while registering the user")
        logger.info(f"[AuthService] Registered user {created.username} ({created.id})")
        return UserPublic.model_validate(created)

    async def login(self, payload: LoginRequest) -> LoginResult:
        if _blank(payload.email) and _blank(payload.username):
            raise ApiError.bad_request("Email or username is required")
        if not payload.password:
            raise ApiError.bad_request("Password is required")

        email = payload.email.strip() if not _blank(payload.email) else None
        username = payload.username.strip() if not _blank(payload.username) else None
        user = await self.repo.find_by_email_or_username(email=email, username=username)
        if not user:
            raise ApiError.not_found("User does not exist")
        if not verify_password(payload.password, user.password):
            raise ApiError.unauthorized("Invalid user credentials")

        tokens = await self.issue_token_pair(str(user.id))
        logged_in = await self.repo.get(str(user.id))
        logger.info(f"[AuthService] User {user.username} logged in")
        return LoginResult(
            user=UserPublic.model_validate(logged_in),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    async def logout(self, user_id: str) -> None:
        await self.repo.clear_refresh_token(user_id)
        logger.info(f"[AuthService] User {user_id} logged out")

    async def refresh(self, presented: Optional[str]) -> TokenPair:
        if not presented:
            raise ApiError.unauthorized("Unauthorized request")
        try:
            claims = decode_refresh_token(presented)
        except jwt.PyJWTError as e:
            logger.warning(f"[AuthService] Rejected refresh token: {e}")
            raise ApiError.unauthorized(str(e) or "Invalid refresh token")

        user = await self.repo.get(claims["sub"])
        if not user:
            raise ApiError.unauthorized("Invalid refresh token")
        if presented != user.refresh_token:
            # 이미 rotation 된 이전 토큰이 다시 들어온 경우
            logger.warning(f"[AuthService] Stale refresh token presented for user {user.id}")
            raise ApiError.unauthorized("Refresh token is expired or used")

        tokens = await self.issue_token_pair(str(user.id))
        logger.info(f"[AuthService] Rotated refresh token for user {user.id}")
        return tokens

    async def change_password(self, user_id: str, payload: ChangePasswordRequest) -> None:
        if not payload.old_password or not payload.new_password:
            raise ApiError.bad_request("Old password and new password are required")
        user = await self.repo.get(user_id)
        if not user:
            raise ApiError.not_found("User does not exist")
        if not verify_password(payload.old_password, user.password):
            raise ApiError.bad_request("Invalid old password")
        await self.repo.set_password(user_id, get_password_hash(payload.new_password))
        logger.info(f"[AuthService] Password changed for user {user_id}")


def get_auth_service(
    repo: UserRepository = Depends(get_user_repository),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> AuthService:
    return AuthService(repo, uploader)
