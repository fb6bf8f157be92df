# FastAPI 진입점
# - 로깅 설정
# - Beanie ODM 초기화 (MongoDB)
# - 에러 -> 응답 봉투 변환 (예외 핸들러)
# - 라우터 등록, CORS 설정

import logging
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.exceptions import ApiError, ErrorKind
from .models.subscription import Subscription
from .models.user import User
from .models.video import Video
from .schemas.response_schema import error_envelope
from .api.v1.users import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="vidtube accounts API",
    description="회원가입/로그인, 토큰 재발급, 프로필 관리, 채널 프로필과 시청 기록",
    version="1.0.0"
)

# CORS 허용 도메인 세팅 (토큰 쿠키를 주고받으므로 credentials 허용)
origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def app_init():
    try:
        client = AsyncIOMotorClient(settings.MONGODB_URI, serverSelectionTimeoutMS=5000)
        await client.admin.command('ping')
        db = client.get_default_database()
        await init_beanie(database=db, document_models=[User, Subscription, Video])
        logger.info("[MongoDB] Connected and Beanie initialized")
    except Exception as e:
        # 연결 실패해도 서버는 뜬다. 헬스체크는 동작하지만 사용자 API는 실패한다.
        logger.error(f"[MongoDB] Connection failed: {e}")

# ---- 에러 -> 응답 변환 (이 파일에서만 상태 코드를 결정) ----

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.kind is ErrorKind.INTERNAL:
        logger.error(f"[API] {request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.status_code, exc.message, exc.errors))

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    status_code = ErrorKind.BAD_REQUEST.status_code
    errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    return JSONResponse(status_code=status_code, content=error_envelope(status_code, "Invalid request body", errors))

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"{type(exc).__name__} on {request.url.path} (500): {exc}", exc_info=exc)
    status_code = ErrorKind.INTERNAL.status_code
    return JSONResponse(status_code=status_code, content=error_envelope(status_code, "Internal server error"))

# 간단한 헬스체크
@app.get("/")
async def root():
    return {"ok": True, "app": settings.APP_NAME, "time": datetime.utcnow().isoformat()}

@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

# API v1 라우터 등록
app.include_router(users_router, prefix="/api/v1")


def run():
    import uvicorn
    uvicorn.run("vidtube.main:app", host=settings.HOST, port=settings.PORT)
