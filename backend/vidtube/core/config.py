# 설정 모듈
# - .env 값들을 한 곳에서 관리
# - 기본값을 제공하여 로컬 실행 편의성 확보

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# backend/vidtube/core/config.py 에서 backend 의 상위 디렉터리가 프로젝트 루트
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"

class Settings(BaseSettings):
    APP_NAME: str = "vidtube"
    ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017/vidtube"

    # 토큰 종류별로 서명 키를 분리한다
    ACCESS_TOKEN_SECRET: str = Field(..., description="Access 토큰 서명 키. 강력한 랜덤 문자열로 설정하세요.")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET: str = Field(..., description="Refresh 토큰 서명 키. Access 키와 다른 값이어야 합니다.")
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    JWT_ALGORITHM: str = "HS256"

    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "lax"

    CORS_ALLOW_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Cloudinary 업로드 API
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_API_BASE: str = "https://api.cloudinary.com/v1_1"
    MEDIA_UPLOAD_TIMEOUT_SECONDS: int = 30

    # 업로드 파일을 미디어 호스트로 넘기기 전 임시 저장 위치
    UPLOAD_TEMP_DIR: str = "./public/temp"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH) if ENV_FILE_PATH.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
