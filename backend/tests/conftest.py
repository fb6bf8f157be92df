# 테스트 공용 설정
# - 설정 모듈이 import 되기 전에 필수 환경변수를 채운다
# - DB 대신 메모리 저장소, Cloudinary 대신 가짜 업로더를 쓴다

import os

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

from datetime import datetime
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from vidtube.core.config import settings
from vidtube.core.exceptions import ApiError
from vidtube.core.security import get_password_hash
from vidtube.main import app
from vidtube.repositories.user_repository import get_user_repository
from vidtube.services.media_service import MediaAsset, get_media_uploader


class FakeUserRepository:
    """UserRepository와 같은 메서드를 가진 메모리 저장소."""

    def __init__(self):
        self.users: Dict[str, SimpleNamespace] = {}
        self.subscriptions: List[tuple] = []  # (subscriber_id, channel_id)
        self.history: Dict[str, List[dict]] = {}

    def add_user(self, full_name="Ann Lee", email="ann@x.com", username="annlee", password="secret1",
                 avatar="https://media.test/avatar.png", cover_image="") -> SimpleNamespace:
        now = datetime.utcnow()
        user = SimpleNamespace(
            id=str(ObjectId()),
            full_name=full_name,
            email=email,
            username=username.lower(),
            password=get_password_hash(password),
            avatar=avatar,
            cover_image=cover_image,
            refresh_token=None,
            watch_history=[],
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return user

    async def get(self, user_id):
        return self.users.get(str(user_id))

    async def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_email_or_username(self, email=None, username=None):
        for u in self.users.values():
            if (email and u.email == email) or (username and u.username == username.lower()):
                return u
        return None

    async def create(self, full_name, email, username, hashed_password, avatar, cover_image=""):
        if await self.find_by_email_or_username(email=email, username=username):
            raise ApiError.conflict("User already exists")
        user = self.add_user(full_name=full_name, email=email, username=username, avatar=avatar,
                             cover_image=cover_image)
        user.password = hashed_password
        return user

    async def update_fields(self, user_id, **fields):
        user = self.users.get(str(user_id))
        if not user:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = datetime.utcnow()
        return user

    async def set_refresh_token(self, user_id, refresh_token):
        return await self.update_fields(user_id, refresh_token=refresh_token)

    async def clear_refresh_token(self, user_id):
        return await self.update_fields(user_id, refresh_token=None)

    async def set_password(self, user_id, hashed_password):
        return await self.update_fields(user_id, password=hashed_password)

    async def update_details(self, user_id, full_name, email):
        return await self.update_fields(user_id, full_name=full_name, email=email)

    async def channel_profile(self, username, viewer_id):
        channel = next((u for u in self.users.values() if u.username == username.lower()), None)
        if not channel:
            return None
        subscribers = [s for s, c in self.subscriptions if c == channel.id]
        subscribed_to = [c for s, c in self.subscriptions if s == channel.id]
        return {
            "_id": ObjectId(channel.id),
            "full_name": channel.full_name,
            "username": channel.username,
            "email": channel.email,
            "avatar": channel.avatar,
            "cover_image": channel.cover_image,
            "subscribers_count": len(subscribers),
            "channels_subscribed_to_count": len(subscribed_to),
            "is_subscribed": viewer_id in subscribers,
        }

    async def watch_history(self, user_id):
        return self.history.get(str(user_id), [])


class FakeUploader:
    """업로드된 파일 경로와 내용을 기록하고 가짜 URL을 돌려준다."""

    def __init__(self):
        self.uploaded: List[str] = []
        self.contents: Dict[str, bytes] = {}
        self.fail = False

    async def upload(self, local_path: Optional[str]) -> Optional[MediaAsset]:
        if not local_path:
            return None
        self.uploaded.append(local_path)
        if os.path.exists(local_path):
            with open(local_path, "rb") as fh:
                self.contents[os.path.basename(local_path)] = fh.read()
        if self.fail:
            return None
        name = os.path.basename(local_path)
        return MediaAsset(url=f"http://media.test/{name}", secure_url=f"https://media.test/{name}")


@pytest.fixture
def repo():
    return FakeUserRepository()

@pytest.fixture
def uploader():
    return FakeUploader()

@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    path = tmp_path / "temp"
    monkeypatch.setattr(settings, "UPLOAD_TEMP_DIR", str(path))
    return path

@pytest.fixture
def client(repo, uploader, temp_dir):
    app.dependency_overrides[get_user_repository] = lambda: repo
    app.dependency_overrides[get_media_uploader] = lambda: uploader
    yield TestClient(app)
    app.dependency_overrides.clear()
