# 요청 컨텍스트와 요청 처리 단계(stage)
# - 라우트마다 실행할 단계 목록을 pipeline(...)에 명시적으로 나열한다
# - 각 단계는 RequestContext를 채운다: 본문(body), 업로드 파일(files), 인증 사용자(user)
# - 응답 후 남아있는 임시 업로드 파일은 삭제한다

import logging
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import jwt
from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from ..core.config import settings
from ..core.exceptions import ApiError
from ..core.security import ACCESS_TOKEN_COOKIE, bearer_token, decode_access_token
from ..repositories.user_repository import UserRepository, get_user_repository

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass
class UploadedFile:
    path: str
    filename: str


@dataclass
class RequestContext:
    request: Request
    users: UserRepository
    user: Optional[Any] = None
    body: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, UploadedFile] = field(default_factory=dict)

    @property
    def user_id(self) -> Optional[str]:
        return str(self.user.id) if self.user is not None else None

    def parsed(self, schema: Type[SchemaT]) -> SchemaT:
        """본문을 요청 스키마로 검증한다. 실패하면 필드별 에러를 담은 BadRequest."""
        try:
            return schema.model_validate(self.body)
        except ValidationError as e:
            errors = jsonable_encoder(e.errors(include_url=False), custom_encoder={Exception: str})
            raise ApiError.bad_request("Invalid request body", errors=errors)

    def file_path(self, name: str) -> Optional[str]:
        uploaded = self.files.get(name)
        return uploaded.path if uploaded else None

    def discard_files(self) -> None:
        for uploaded in self.files.values():
            if os.path.exists(uploaded.path):
                try:
                    os.remove(uploaded.path)
                except OSError as e:
                    logger.warning(f"[Upload] Could not remove temp file {uploaded.path}: {e}")
        self.files.clear()


Stage = Callable[[RequestContext], Awaitable[None]]


def _content_type(request: Request) -> str:
    return request.headers.get("content-type", "").lower()

def _is_form(request: Request) -> bool:
    ct = _content_type(request)
    return ct.startswith("multipart/form-data") or ct.startswith("application/x-www-form-urlencoded")


async def parse_body(ctx: RequestContext) -> None:
    """JSON 또는 form 필드를 ctx.body에 담는다. 파일 필드는 제외."""
    request = ctx.request
    if _content_type(request).startswith("application/json"):
        raw = await request.body()
        if not raw.strip():
            return
        try:
            data = await request.json()
        except ValueError:
            raise ApiError.bad_request("Malformed JSON body")
        if not isinstance(data, dict):
            raise ApiError.bad_request("Request body must be a JSON object")
        ctx.body.update(data)
    elif _is_form(request):
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, str):
                ctx.body.setdefault(key, value)


async def _save_upload(upload: UploadFile) -> Optional[UploadedFile]:
    os.makedirs(settings.UPLOAD_TEMP_DIR, exist_ok=True)
    filename = os.path.basename(upload.filename)
    path = os.path.join(settings.UPLOAD_TEMP_DIR, f"{uuid.uuid4().hex}-{filename}")
    size = 0
    with open(path, "wb") as out:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > settings.MAX_UPLOAD_BYTES:
                out.close()
                os.remove(path)
                raise ApiError.bad_request(f"File {filename} exceeds the upload size limit")
            out.write(chunk)
    if size == 0:
        os.remove(path)
        return None
    return UploadedFile(path=path, filename=filename)


def accept_files(*names: str) -> Stage:
    """지정한 필드의 업로드 파일을 (필드당 1개) 임시 디렉터리에 저장하는 단계를 만든다."""
    async def _accept(ctx: RequestContext) -> None:
        if not _content_type(ctx.request).startswith("multipart/form-data"):
            return
        form = await ctx.request.form()
        for name in names:
            upload = form.get(name)
            if not isinstance(upload, UploadFile) or not upload.filename:
                continue
            saved = await _save_upload(upload)
            if saved:
                ctx.files[name] = saved
    return _accept


async def authenticate(ctx: RequestContext) -> None:
    """accessToken 쿠키 또는 Bearer 헤더의 토큰으로 사용자를 확인한다."""
    request = ctx.request
    token = request.cookies.get(ACCESS_TOKEN_COOKIE) or bearer_token(request.headers.get("Authorization"))
    if not token:
        raise ApiError.unauthorized("Unauthorized request")
    try:
        claims = decode_access_token(token)
    except jwt.PyJWTError:
        raise ApiError.unauthorized("Invalid access token")
    user = await ctx.users.get(claims["sub"])
    if not user:
        raise ApiError.unauthorized("Invalid access token")
    ctx.user = user


def pipeline(*stages: Stage):
    """단계들을 순서대로 실행해 RequestContext를 만드는 FastAPI 의존성."""
    async def _build(request: Request, users: UserRepository = Depends(get_user_repository)):
        ctx = RequestContext(request=request, users=users)
        try:
            for stage in stages:
                await stage(ctx)
            yield ctx
        finally:
            ctx.discard_files()
    return _build
